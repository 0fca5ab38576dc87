"""
Central configuration for the Study Labs Leaderboard.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

import os
from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_FOLDER = Path(os.getenv("STUDYLABS_DATA_DIR", PROJECT_ROOT / "data"))

# Persisted record stores (both are replaced wholesale on every update)
PARTICIPANTS_FILE = "participants.csv"
OVERRIDES_FILE = "fixed_rankings.json"

# --- Participant Record Columns ---
PARTICIPANT_COLUMNS = [
    "Name",
    "Email",
    "SkillBadges",
    "ArcadeGames",
    "ProfileURL",
    "CompletionDate",
]

# --- Program Completion ---
# Fixed by the tracked program, not tunable
QUALIFYING_SKILL_BADGES = 19
QUALIFYING_ARCADE_GAMES = 1

# --- Roster CSV Layout (zero-based column positions) ---
COL_NAME = 0
COL_EMAIL = 1
COL_PROFILE = 2
COL_SKILL_BADGES = 6
COL_ARCADE_GAMES = 8
COL_COMPLETION_DATE = 12

# --- Input Validation ---
MAX_UPLOAD_SIZE = 5_000_000  # Maximum roster upload in bytes (~5MB)

# --- Admin ---
# No default: the admin tab stays locked until a passcode is configured
ADMIN_CODE = os.getenv("STUDYLABS_ADMIN_CODE")

# --- Display ---
APP_TITLE = "Google Cloud Study Labs"
APP_SUBTITLE = "GDG MMMUT Gorakhpur"
TOP_N_LOG = 20  # Rows logged by the ranking CLI
