#!/usr/bin/env python3
"""
Content pipeline CLI - Entry point
"""

import sys
from pathlib import Path

# Add project root to path
SCRIPT_DIR = Path(__file__).parent
PROJECT_DIR = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_DIR))

from covenant.cli.app import app as cli_app

__all__ = ['cli_app']

if __name__ == "__main__":
    cli_app()
