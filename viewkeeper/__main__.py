#!/usr/bin/env python3
"""viewkeeper - view-once media recovery

Usage:
    viewkeeper inspect envelope.json    # Detect and extract a view-once message
    viewkeeper clean [--hours H]        # Evict old temp files
    viewkeeper config get KEY           # Read the key/value store
    viewkeeper config set KEY VALUE     # Write the key/value store
    viewkeeper version                  # Show version
"""

import sys

from viewkeeper.cli import main

if __name__ == "__main__":
    sys.exit(main())
