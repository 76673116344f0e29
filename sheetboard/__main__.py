"""Module entry point for sheetboard.

Run with: python -m sheetboard
"""

from .app import main

if __name__ == "__main__":
    raise SystemExit(main())
