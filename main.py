#!/usr/bin/env python3
"""
main.py - Entry point for splitar when run from a source checkout.
"""
import sys
from pathlib import Path

if __name__ == "__main__":
    # Get the directory containing this script
    script_dir = Path(__file__).resolve().parent

    # Add to Python path if not already there
    if str(script_dir) not in sys.path:
        sys.path.insert(0, str(script_dir))

    # Import and run the CLI
    try:
        from splitar.cli import main
    except ImportError as e:
        print(f"Error importing splitar modules: {e}")
        print("Make sure you're running from the project root directory.")
        sys.exit(1)
    sys.exit(main())
