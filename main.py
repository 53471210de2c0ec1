"""
Convey - Main Entry Point

Runs the command-line interface, e.g.:

    python main.py check 1.2.0 --config convey.json
"""

from convey.cli import cli

if __name__ == "__main__":
    cli()
