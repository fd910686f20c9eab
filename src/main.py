#!/usr/bin/env python3
"""
Beacon Statistics Exporter
Keeps day-indexed validator statistics and chart series caught up with the beacon chain index.
"""
import asyncio
import sys
from src.cli import main

def entrypoint():
    sys.exit(asyncio.run(main()))

if __name__ == "__main__":
    entrypoint()
