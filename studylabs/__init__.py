"""
Study Labs Leaderboard - Core Package

This package contains the core modules for:
- Leaderboard ranking (studylabs.ranking)
- Roster ingestion (studylabs.ingestion)
- Record stores (studylabs.storage)
- Shared configuration and utilities
"""

from studylabs.config import *
