"""Main entry point for the File Organizer.

This allows the package to be run as:
    python -m file_organizer
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()
