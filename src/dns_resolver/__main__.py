"""
Entry point for running dns_resolver as a module.

Usage: python -m dns_resolver [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
