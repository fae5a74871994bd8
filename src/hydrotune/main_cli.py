# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
hydrotune Command-Line Interface entry point.

Provides the main() function behind the ``hydrotune`` console script:
parses arguments, dispatches to the command handler and maps interrupts
and errors to exit codes.
"""


def main(argv=None):
    """
    Main entry point for the hydrotune CLI.

    Returns:
        Exit code: 0 success, 1 error, 130 interrupted
    """
    import sys

    from hydrotune.core.exceptions import HydrotuneError

    from hydrotune.cli.argument_parser import CLIParser

    try:
        parser = CLIParser()
        args = parser.parse_args(argv)

        if hasattr(args, 'func'):
            return int(args.func(args))
        parser.parser.print_help()
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except (HydrotuneError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
