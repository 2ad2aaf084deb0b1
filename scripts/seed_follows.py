"""
Seed the follows table with sample data and page through it.

Thin wrapper around followstore.demo for running from a checkout.

Usage:
    python scripts/seed_follows.py --create-table
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from followstore.demo import main


if __name__ == "__main__":
    sys.exit(main())
