"""Entry point for ``python -m mocktave``."""

from __future__ import annotations


def main() -> int:
    """Run the mocktave CLI."""
    from mocktave.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
