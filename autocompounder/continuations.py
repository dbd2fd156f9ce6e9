"""Continuation tags: where a suspended workflow resumes once its dispatched instruction completed.

Each variant carries exactly the data the resumed step needs, so no shared correlation cell is
required and overlapping workflows cannot resume with each other's beneficiary.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from autocompounder.addresses import Addr
from autocompounder.instructions import Instruction
from autocompounder.models import Asset


@dataclass(frozen=True)
class Instantiate:
    """Vault token created; record its denom in the config."""


@dataclass(frozen=True)
class ProvisionAfterDeposit:
    """Liquidity provided for a deposit; mint shares to `beneficiary` and stake the new LP."""

    beneficiary: Addr
    # LP held by the vault before the provision; only the increase belongs to this deposit.
    lp_before: int


@dataclass(frozen=True)
class WithdrawalComplete:
    """Liquidity withdrawn; transfer the released pool assets to `recipient`."""

    recipient: Addr
    balances_before: tuple[Asset, ...]


@dataclass(frozen=True)
class RewardsClaimed:
    """Staking rewards claimed; take the performance fee and compound the remainder."""


@dataclass(frozen=True)
class RewardsSwapped:
    """Non-pool rewards swapped into a pool asset; provide liquidity with the pool balances."""


@dataclass(frozen=True)
class ProvisionAfterCompound:
    """Compounded rewards provided as liquidity; stake the new LP."""

    lp_before: int


@dataclass(frozen=True)
class FeeSwapped:
    """Performance fee swapped into the fee asset; send it to the fee collector."""

    fee_asset: str
    # Fee-asset balance that does not belong to the fee (e.g. rewards of the same asset).
    baseline: int


Continuation = Union[
    Instantiate,
    ProvisionAfterDeposit,
    WithdrawalComplete,
    RewardsClaimed,
    RewardsSwapped,
    ProvisionAfterCompound,
    FeeSwapped,
]


@dataclass(frozen=True)
class Dispatch:
    """An instruction and, if the workflow suspends on it, the continuation to resume with."""

    instruction: Instruction
    continuation: Continuation | None = None


@dataclass
class Response:
    """Result of one entry point or resumption: instructions to run, in order, plus attributes."""

    dispatches: list[Dispatch] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    def add_message(self, instruction: Instruction) -> "Response":
        self.dispatches.append(Dispatch(instruction))
        return self

    def add_messages(self, instructions: list[Instruction]) -> "Response":
        for instruction in instructions:
            self.add_message(instruction)
        return self

    def add_submessage(self, instruction: Instruction, continuation: Continuation) -> "Response":
        self.dispatches.append(Dispatch(instruction, continuation))
        return self

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes[key] = value
        return self
