"""
Leaderboard Ranking Engine

This module orders Study Labs participants for the leaderboard. Ordering is a
stable sort over a chain of comparator tiers:
- Fixed overrides: administrator-pinned ranks always come first
- Completion fast path: participants who finished the program (19 skill
  badges + 1 arcade game) are ordered by completion date
- Score fallback: skill badges, then arcade games, then name

rank() is pure: it never mutates its inputs, holds no state and does no I/O,
so it is safe to call from concurrent requests.

Usage:
    python -m studylabs.ranking.engine
    OR
    from studylabs.ranking import rank, rank_dataframe
"""

import locale
from functools import cmp_to_key

import pandas as pd

from studylabs.config import (
    DATA_FOLDER,
    PARTICIPANT_COLUMNS,
    QUALIFYING_ARCADE_GAMES,
    QUALIFYING_SKILL_BADGES,
    TOP_N_LOG,
)
from studylabs.ranking.dates import parse_completion_date
from studylabs.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def is_qualifying(participant: dict) -> bool:
    """True when the participant has exactly the program's completion counts."""
    return (
        participant.get("SkillBadges") == QUALIFYING_SKILL_BADGES
        and participant.get("ArcadeGames") == QUALIFYING_ARCADE_GAMES
    )


def participant_key(participant: dict, position: int) -> str:
    """
    Identity key for a participant: Email, else Name, else a positional placeholder.

    Args:
        participant: Participant record
        position: Zero-based position in the snapshot

    Returns:
        Lower-cased email, trimmed name, or "row-<n>"
    """
    email = _text(participant.get("Email")).lower()
    if email:
        return email
    name = _text(participant.get("Name"))
    if name:
        return name
    return f"row-{position + 1}"


def _text(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


# --- Comparator Tiers ---
def compare_overrides(a: dict, b: dict) -> int:
    """Pinned beats unpinned; two pinned entries compare by override value."""
    oa, ob = a["override"], b["override"]
    if oa is not None and ob is not None:
        return _cmp(oa, ob)
    if oa is not None:
        return -1
    if ob is not None:
        return 1
    return 0


def compare_completion(a: dict, b: dict) -> int:
    """Earlier qualifying completion first; a usable date beats none."""
    da, db = a["completion"], b["completion"]
    if da is not None and db is not None:
        return _cmp(da, db)
    if da is not None:
        return -1
    if db is not None:
        return 1
    return 0


def compare_scores(a: dict, b: dict) -> int:
    """Skill badges desc, arcade games desc, then name asc (locale collation)."""
    pa, pb = a["participant"], b["participant"]
    result = _cmp(pb.get("SkillBadges", 0), pa.get("SkillBadges", 0))
    if result:
        return result
    result = _cmp(pb.get("ArcadeGames", 0), pa.get("ArcadeGames", 0))
    if result:
        return result
    return _cmp(locale.strcoll(_text(pa.get("Name")), _text(pb.get("Name"))), 0)


# Only consulted when neither side is pinned
COMPUTED_TIERS = (compare_completion, compare_scores)


def _compare(a: dict, b: dict) -> int:
    # Equal overrides stay in input order; they never fall through to scores
    if a["override"] is not None or b["override"] is not None:
        return compare_overrides(a, b)

    for tier in COMPUTED_TIERS:
        result = tier(a, b)
        if result:
            return result
    return 0


def _rank_entries(participants, overrides) -> list[dict]:
    pinned = {str(k).strip().lower(): v for k, v in (overrides or {}).items()}

    entries = []
    for participant in participants:
        qualifying = is_qualifying(participant)
        # Overrides are keyed by email only
        email = _text(participant.get("Email")).lower()
        entries.append({
            "participant": participant,
            "override": pinned.get(email) if email else None,
            "qualifying": qualifying,
            "completion": (
                parse_completion_date(participant.get("CompletionDate"))
                if qualifying else None
            ),
        })

    # sorted() is stable: full ties keep their input order
    return sorted(entries, key=cmp_to_key(_compare))


def rank(participants, overrides=None) -> list[dict]:
    """
    Order participants for the leaderboard.

    Args:
        participants: Sequence of participant records (dicts keyed by
            Name, Email, SkillBadges, ArcadeGames, ProfileURL, CompletionDate)
        overrides: Mapping of email -> fixed rank (lower ranks first)

    Returns:
        New list with every input participant exactly once, best first
    """
    return [entry["participant"] for entry in _rank_entries(participants, overrides)]


def assign_rank_numbers(ranked) -> list[tuple[int, dict]]:
    """Pair each participant in final order with its 1-based position."""
    return [(position, participant) for position, participant in enumerate(ranked, start=1)]


def rank_dataframe(participants, overrides=None) -> pd.DataFrame:
    """
    Rank participants and return a display DataFrame.

    Args:
        participants: Sequence of participant records
        overrides: Mapping of email -> fixed rank

    Returns:
        DataFrame with columns: rank, <participant columns>, qualified, fixed_rank
    """
    entries = _rank_entries(participants, overrides)

    df = pd.DataFrame([e["participant"] for e in entries], columns=PARTICIPANT_COLUMNS)
    df.insert(0, "rank", range(1, len(entries) + 1))
    df["qualified"] = [e["qualifying"] for e in entries]
    df["fixed_rank"] = pd.array([e["override"] for e in entries], dtype="Int64")

    return df


def main() -> pd.DataFrame:
    """Rank the stored snapshot and log the result."""
    from studylabs.storage import AppState, OverrideStore, ParticipantStore

    state = AppState()
    participants = ParticipantStore(state, DATA_FOLDER).load()
    overrides = OverrideStore(state, DATA_FOLDER).load()

    logger.info("=" * 60)
    logger.info("Study Labs Leaderboard Ranking")
    logger.info("=" * 60)
    logger.info(f"Loaded {len(participants)} participants, {len(overrides)} fixed rankings")

    df = rank_dataframe(participants, overrides)
    if df.empty:
        logger.warning("No participants to rank. Upload a roster first.")
        return df

    applied = int(df["fixed_rank"].notna().sum())
    known = {_text(p.get("Email")).lower() for p in participants}
    unused = [email for email in overrides if email not in known]
    logger.info(f"Top {TOP_N_LOG} Participants:")
    logger.info("\n" + df.head(TOP_N_LOG)[["rank", "Name", "SkillBadges", "ArcadeGames", "CompletionDate"]].to_string(index=False))

    logger.info("Summary:")
    logger.info(f"  Qualified completions: {int(df['qualified'].sum())}")
    logger.info(f"  Fixed rankings applied: {applied}")
    logger.info(f"  Fixed rankings unused: {len(unused)}")

    return df


if __name__ == "__main__":
    main()
