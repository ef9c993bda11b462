#!/usr/bin/env python3
"""PodBar VM Monitor - Module entry point."""
import sys

from vm_monitor.cli import main

if __name__ == "__main__":
    sys.exit(main())
