#!/usr/bin/env python3
"""
Regex Rename Tool - Main Entry

Supports:
- GUI editing (default startup)
- Terminal editing (--cli or -c parameter)
- Non-interactive confirmation (--yes)

Usage:
    python main.py *.txt                                  # GUI mode (default)
    ls | python main.py --cli                             # Terminal mode, files from stdin
    python main.py a.txt b.txt -r 'a' -s 'b' --dry-run -y # Print commands only
"""

import sys
from pathlib import Path

# Ensure the current directory is in the Python path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    """Main entry point"""
    from cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
