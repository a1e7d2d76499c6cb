#!/usr/bin/env python3
"""netdiag — TCP connectivity diagnostics TUI.

Run with root privileges so packet capture works:
    sudo python main.py

Settings come from NETDIAG_* environment variables (see config.py).
"""

import logging
import sys
import os

# Ensure the project root is on the path so relative imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import LOG_FILE, LOG_LEVEL
from ui.app import NetDiagApp


def main():
    # The TUI owns the terminal, so logs go to a file
    logging.basicConfig(
        filename=LOG_FILE,
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    app = NetDiagApp()
    app.run()


if __name__ == "__main__":
    main()
