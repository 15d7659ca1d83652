"""Main CLI entry point for envinject."""

import argparse
import sys
from typing import Optional

from .commands import run_substitution, check_placeholders


def add_common_arguments(parser: argparse.ArgumentParser):
    """Arguments shared by every command."""
    parser.add_argument(
        '--config',
        type=str,
        metavar='PATH',
        help='YAML file with default settings'
    )
    parser.add_argument(
        '--prefix-var',
        type=str,
        metavar='NAME',
        help='Environment variable holding the prefix (default: APP_PREFIX)'
    )
    parser.add_argument(
        '--roots-var',
        type=str,
        metavar='NAME',
        help='Environment variable holding the roots (default: ASSET_DIRS)'
    )
    parser.add_argument(
        '--prefix',
        type=str,
        help='Prefix of substitutable variables (overrides the environment)'
    )
    parser.add_argument(
        '--root',
        action='append',
        metavar='DIR',
        help='Directory to scan (can be specified multiple times; overrides the environment)'
    )
    parser.add_argument(
        '--follow-symlinks',
        action='store_true',
        default=None,
        help='Follow symbolic links instead of skipping them'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the envinject CLI."""
    parser = argparse.ArgumentParser(
        prog='envinject',
        description='Replace environment variable placeholders in static asset files'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    run_parser = subparsers.add_parser('run', help='Substitute placeholders in place')
    add_common_arguments(run_parser)
    run_parser.add_argument(
        '--on-error',
        choices=['stop', 'continue'],
        default=None,
        help='Stop at the first failing file, or process all files and fail at the end'
    )
    run_parser.add_argument(
        '--mask-values',
        action='store_true',
        default=None,
        help=('Mask substituted values in log output (best-effort: short values are also '
              'masked where they occur inside keys and paths)')
    )
    run_parser.add_argument(
        '--timeout',
        type=float,
        metavar='SECONDS',
        help='Fail if the run takes longer than this'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        default=None,
        help='Report what would change without writing'
    )

    check_parser = subparsers.add_parser(
        'check',
        help='Fail if any file under the roots still contains a placeholder'
    )
    add_common_arguments(check_parser)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return run_substitution(parsed_args)
    elif parsed_args.command == 'check':
        return check_placeholders(parsed_args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
