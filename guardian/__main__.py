"""
__main__.py - Allows running guardian with ``python -m guardian``
"""

from guardian.cli import cli

if __name__ == "__main__":
    cli()
