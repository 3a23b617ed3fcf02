#!/usr/bin/env python3
"""
run.py - Main entry point for Connect Four against the MCTS engine

    python run.py play
    python run.py move --moves 0,0,1,1,2
    python run.py --help
"""

import sys

from connect4_mcts.interfaces.cli import main

if __name__ == "__main__":
    sys.exit(main())
