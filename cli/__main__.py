"""
Entry point for running the SRI assessment CLI as a module.

Usage:
    python -m cli start --type full
    python -m cli progress show
    python -m cli sessions list
    python -m cli sessions view session_1700000000000_abc123xyz
"""

from .commands import main

if __name__ == "__main__":
    main()
