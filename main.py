#!/usr/bin/env python3
"""PomoTrack entry point.

Run with:
    python main.py
    python -m pomotrack
"""

from pomotrack.__main__ import main


if __name__ == "__main__":
    main()
