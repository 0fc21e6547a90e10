"""Allow stratus to be run as a module.

This enables running the CLI with `python -m cli`.
"""

from .app import main

if __name__ == "__main__":
    main()
