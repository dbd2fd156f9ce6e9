"""Allow running the package as a module: python -m autocompounder"""

import sys

from autocompounder.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
