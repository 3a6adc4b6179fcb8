"""Main entry point when executing relayrpc as a package.

This allows running the package using python -m relayrpc.
"""

from relayrpc.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
