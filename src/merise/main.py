"""
Merise toolchain entry point.

Installed as the ``merise`` console script; also runnable with
``python -m merise``.
"""

import sys
from typing import List, Optional

from .cli.commands import COMMANDS
from .cli.parsers import create_argument_parser
from .constants import ExitCode


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return ExitCode.ERROR

    command = COMMANDS[args.command]()
    try:
        return command.execute(args)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return ExitCode.ERROR


if __name__ == '__main__':
    sys.exit(main())
