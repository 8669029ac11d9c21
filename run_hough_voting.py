#!/usr/bin/env python3
"""
Command-line entry point for the Hough voting pipeline.

This script serves as the main entry point for running Hough voting on an
.npz archive. It passes all command-line arguments to the pipeline.
"""

import os
import sys

# Ensure the current directory is in the path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from hough_voting.main import main

if __name__ == "__main__":
    sys.exit(main())
