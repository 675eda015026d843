"""Main entry point for running surveyor as a module.

Usage:
    python -m surveyor --help
    python -m surveyor --project infra-a
"""

from __future__ import annotations

from .cli import app

if __name__ == "__main__":
    app()
