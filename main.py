#!/usr/bin/env python3
"""WaveOps - Natural-Language Coordination Command Engine

Entry point for running the command-line interface from a source checkout.
"""

import sys
from pathlib import Path

# Adding src to path for development
sys.path.insert(0, str(Path(__file__).parent / "src"))


def main():
    """Main entry point for WaveOps."""
    from waveops.cli import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
