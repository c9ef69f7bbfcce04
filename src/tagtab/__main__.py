"""
Main entry point for the tagtab CLI.

This module is executed when running `python -m tagtab` or via the `tagtab` executable.
"""

from .cli import app


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
