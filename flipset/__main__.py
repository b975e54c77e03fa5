"""
Entry point for running flipset as a module.

Usage:
    python -m flipset category list
    python -m flipset review show
    python -m flipset --help
"""
from .cli.main import main

if __name__ == "__main__":
    main()
