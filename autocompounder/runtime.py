"""All-or-nothing execution of vault calls.

A top-level call runs the entry point, then dispatches its instructions depth first: when an
instruction carries a continuation, the vault resumes right after it, and the follow-up
instructions run before the next sibling. If anything raises, every state change made during the
call (vault state and collaborators alike) is rolled back and the error propagates.
"""

import copy
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from autocompounder import contract
from autocompounder.adapters import Bank, DexAdapter, StakingAdapter
from autocompounder.addresses import to_address
from autocompounder.continuations import Response
from autocompounder.errors import VaultTokenNotInitialized
from autocompounder.instructions import (
    BANK_INSTRUCTIONS,
    DEX_INSTRUCTIONS,
    STAKING_INSTRUCTIONS,
    Instruction,
    Transfer,
)
from autocompounder.messages import ExecuteMsg, InstantiateMsg, MessageInfo, QueryMsg
from autocompounder.models import Asset, BlockInfo, Clock, ReplyResult
from autocompounder.state import Context, VaultState

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Responses of a top-level call and the instructions it executed, in execution order."""

    responses: list[Response] = field(default_factory=list)
    executed: list[Instruction] = field(default_factory=list)

    def of_type(self, kind: type) -> list[Any]:
        return [instruction for instruction in self.executed if isinstance(instruction, kind)]

    def attribute(self, key: str) -> Any:
        """Value of `key` from the first response that set it."""
        for response in self.responses:
            if key in response.attributes:
                return response.attributes[key]
        raise KeyError(key)


class Runtime:
    """Hosts one vault and its collaborators."""

    def __init__(
        self,
        bank: Bank,
        dex: DexAdapter,
        staking: StakingAdapter,
        address: str,
        clock: Clock | None = None,
    ) -> None:
        self.bank = bank
        self.dex = dex
        self.staking = staking
        self.address = to_address(address)
        self.clock = clock or Clock()
        self.state: VaultState | None = None

    @property
    def block(self) -> BlockInfo:
        return self.clock.block

    def advance(self, blocks: int = 1, seconds: int | None = None) -> BlockInfo:
        return self.clock.advance(blocks, seconds)

    def context(self) -> Context:
        if self.state is None:
            raise VaultTokenNotInitialized()
        return Context(self.state, self.bank, self.dex, self.staking, self.address, self.block)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def instantiate(self, sender: str, msg: InstantiateMsg) -> ExecutionResult:
        with self._transaction("instantiate"):
            state, response = contract.instantiate(self.dex, self.staking, MessageInfo(sender), msg)
            self.state = state
            return self._run(response)

    def execute(self, sender: str, msg: ExecuteMsg, funds: Sequence[Asset] = ()) -> ExecutionResult:
        info = MessageInfo(sender, tuple(funds))
        with self._transaction(type(msg).__name__):
            ctx = self.context()
            # Attached funds reach the vault before the entry point runs.
            for asset in info.funds:
                if asset.amount:
                    self.bank.execute(info.sender, Transfer((asset,), self.address))
            response = contract.execute(ctx, info, msg)
            return self._run(response)

    def query(self, msg: QueryMsg) -> Any:
        return contract.query(self.context(), msg)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _run(self, response: Response, result: ExecutionResult | None = None) -> ExecutionResult:
        result = result if result is not None else ExecutionResult()
        result.responses.append(response)
        for dispatch in response.dispatches:
            reply = self._dispatch(dispatch.instruction)
            result.executed.append(dispatch.instruction)
            if dispatch.continuation is not None:
                follow_up = contract.reply(self.context(), dispatch.continuation, reply)
                self._run(follow_up, result)
        return result

    def _dispatch(self, instruction: Instruction) -> ReplyResult:
        logger.debug("Dispatching %s", instruction)
        if isinstance(instruction, DEX_INSTRUCTIONS):
            return self.dex.execute(self.address, instruction)
        if isinstance(instruction, STAKING_INSTRUCTIONS):
            return self.staking.execute(self.address, instruction)
        if isinstance(instruction, BANK_INSTRUCTIONS):
            return self.bank.execute(self.address, instruction)
        raise TypeError(f"Unsupported instruction: {type(instruction).__name__}")

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------
    def _collaborators(self) -> list[Any]:
        # The dex and staking provider may share the bank; each object is snapshotted once.
        unique: dict[int, Any] = {}
        for obj in (self.bank, self.dex, self.staking):
            unique.setdefault(id(obj), obj)
        return list(unique.values())

    def _snapshot(self) -> tuple[list[dict[str, Any]], VaultState | None]:
        collaborators = self._collaborators()
        # References between collaborators (and to the clock) are kept, not copied.
        memo: dict[int, Any] = {id(obj): obj for obj in collaborators}
        memo[id(self.clock)] = self.clock
        saved = [copy.deepcopy(obj.__dict__, memo) for obj in collaborators]
        return saved, copy.deepcopy(self.state)

    def _restore(self, snapshot: tuple[list[dict[str, Any]], VaultState | None]) -> None:
        saved, state = snapshot
        for obj, attrs in zip(self._collaborators(), saved):
            obj.__dict__.clear()
            obj.__dict__.update(attrs)
        self.state = state

    @contextmanager
    def _transaction(self, label: str) -> Iterator[None]:
        snapshot = self._snapshot()
        try:
            yield
        except Exception as exc:
            self._restore(snapshot)
            logger.info("Rolled back %s at height %d: %s", label, self.block.height, exc)
            raise
