#!/usr/bin/env python3
"""
Server Optimizer - Main Entry Point
"""

import sys

from server_optimizer.cli import main

if __name__ == "__main__":
    sys.exit(main())
