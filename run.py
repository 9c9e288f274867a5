#!/usr/bin/env python
"""
Workout engine CLI runner.

Usage:
    python run.py simulate          # live workout on simulated GPS
    python run.py replay track.json # replay a recorded track
    python run.py stats             # streaks, goal and summary
    python run.py history           # recent workouts
    python run.py sync              # upload workouts to supabase
"""

import sys
from pathlib import Path

# add package root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from crdo.main import main

if __name__ == "__main__":
    main()
