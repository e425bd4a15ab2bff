"""CLI entry point for acp-bridge."""

import sys


def main() -> int:
    """Main entry point for acp-bridge CLI."""
    from acp_bridge.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
