"""
Entry point for running the pipeline as a module: python -m docintel
"""

import sys
from docintel.cli import main

if __name__ == "__main__":
    sys.exit(main())
