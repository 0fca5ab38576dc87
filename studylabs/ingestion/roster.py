"""
Roster CSV Ingestion

This module turns an uploaded roster export into participant records.
Columns are positional (the header row is skipped, header names are never
trusted):

    A (0)  Name
    B (1)  Email
    C (2)  Profile URL, or text/formula containing one
    G (6)  Skill badges
    I (8)  Arcade games
    M (12) Completion date

Malformed cells fall back to safe defaults. Only a file that cannot be read
as delimited text at all raises RosterParseError, and then nothing is stored.

Usage:
    python -m studylabs.ingestion.roster roster.csv [--dry-run]

    Programmatic usage:
        from studylabs.ingestion.roster import parse_roster, ingest_roster
        participants = parse_roster(uploaded_bytes)
"""

import argparse
import csv
import io
import sys
from collections import Counter
from pathlib import Path

import numpy as np
import pandas as pd

from studylabs.config import (
    COL_ARCADE_GAMES,
    COL_COMPLETION_DATE,
    COL_EMAIL,
    COL_NAME,
    COL_PROFILE,
    COL_SKILL_BADGES,
    DATA_FOLDER,
    MAX_UPLOAD_SIZE,
)
from studylabs.ranking.dates import normalize_completion_date
from studylabs.ranking.engine import is_qualifying, participant_key
from studylabs.utils import SCHEME_RE, URL_RE, setup_logging, validate_input_size

# --- Module Logger ---
logger = setup_logging(__name__)


class IngestionError(Exception):
    """Custom exception for ingestion errors"""
    pass


class RosterParseError(IngestionError):
    """The upload as a whole could not be read as a roster"""
    pass


# --- Cell Extraction ---
def _cell(row: list, index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


def extract_profile_url(cell) -> str:
    """
    Pull a usable profile link out of a roster cell.

    Spreadsheet exports often render HYPERLINK formulas as display text, so the
    first http(s):// or www. token wins over the raw cell.
    """
    text = str(cell or "").strip()
    if not text:
        return ""

    m_url = URL_RE.search(text)
    if m_url:
        text = m_url.group(0)

    if not SCHEME_RE.match(text):
        text = f"https://{text}"
    return text


def coerce_count(cell) -> int:
    """Parse a count cell; empty, non-numeric or non-finite values become 0."""
    text = str(cell if cell is not None else "").strip()
    if not text:
        return 0

    number = pd.to_numeric(text, errors="coerce")
    if not np.isfinite(number):
        return 0
    return max(int(number), 0)


def parse_row(row: list) -> dict:
    """
    Extract one participant record from a positional roster row.

    Args:
        row: Raw cells of one data row (may be shorter than 13 cells)

    Returns:
        Participant record dict
    """
    participant = {
        "Name": _cell(row, COL_NAME).strip(),
        "Email": _cell(row, COL_EMAIL).strip().lower(),
        "SkillBadges": coerce_count(_cell(row, COL_SKILL_BADGES)),
        "ArcadeGames": coerce_count(_cell(row, COL_ARCADE_GAMES)),
        "ProfileURL": extract_profile_url(_cell(row, COL_PROFILE)),
        "CompletionDate": None,
    }

    # Dates are only meaningful for finished participants
    if is_qualifying(participant):
        participant["CompletionDate"] = normalize_completion_date(_cell(row, COL_COMPLETION_DATE))

    return participant


# --- File Decoding ---
def decode_roster(data: bytes | str) -> str:
    """
    Decode an upload into text.

    Raises:
        RosterParseError: If the upload is too large or is not text
    """
    try:
        validate_input_size(data, MAX_UPLOAD_SIZE)
    except ValueError as e:
        raise RosterParseError(str(e)) from e

    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = data.decode("latin-1")
    else:
        text = data.lstrip("\ufeff")

    if "\x00" in text:
        raise RosterParseError("File is not delimited text (binary content found)")

    return text


def read_rows(text: str) -> list[list[str]]:
    """
    Split decoded text into CSV rows, dropping blank lines.

    Raises:
        RosterParseError: If the CSV tokenizer rejects the file
    """
    try:
        rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise RosterParseError(f"Failed to parse CSV: {e}") from e

    if not rows:
        raise RosterParseError("File is empty: expected a header row followed by participant rows")

    return rows


def parse_roster(data: bytes | str) -> list[dict]:
    """
    Parse a whole roster upload into participant records.

    Args:
        data: Raw upload (bytes from a file uploader, or already-decoded text)

    Returns:
        List of participant dicts, in file order

    Raises:
        RosterParseError: If the file cannot be read as a roster
    """
    rows = read_rows(decode_roster(data))
    # First row is the spreadsheet header
    return [parse_row(row) for row in rows[1:]]


def validate_roster(participants: list[dict]) -> list[str]:
    """
    Soft checks on a parsed roster.

    Returns:
        List of warning messages (empty if all checks pass)
    """
    warnings = []

    if not participants:
        warnings.append("Roster has a header row but no participants")
        return warnings

    missing_email = sum(1 for p in participants if not p["Email"])
    if missing_email:
        warnings.append(f"Found {missing_email} rows without an email")

    keys = Counter(participant_key(p, i) for i, p in enumerate(participants))
    duplicates = sorted(k for k, n in keys.items() if n > 1)
    if duplicates:
        warnings.append(f"Duplicate participants found: {duplicates[:10]}")

    return warnings


def ingest_roster(data: bytes | str, store, dry_run: bool = False) -> dict:
    """
    Main entry point for roster ingestion.

    Args:
        data: Raw roster upload
        store: ParticipantStore receiving the new snapshot
        dry_run: If True, parse and validate only without saving

    Returns:
        Dictionary with:
            - success: bool
            - rows: number of participants parsed
            - qualified: number of qualifying completions
            - warnings: list of warning messages
            - committed: whether the snapshot was stored
            - participants: the parsed records

    Raises:
        RosterParseError: If the file cannot be parsed
    """
    result = {
        'success': False,
        'rows': 0,
        'qualified': 0,
        'warnings': [],
        'committed': False,
        'participants': [],
    }

    logger.info("Parsing roster...")
    participants = parse_roster(data)
    result['participants'] = participants
    result['rows'] = len(participants)
    result['qualified'] = sum(1 for p in participants if is_qualifying(p))
    logger.info(f"  Parsed {result['rows']} participants ({result['qualified']} qualified)")

    logger.info("Validating roster...")
    warnings = validate_roster(participants)
    result['warnings'] = warnings
    if warnings:
        for w in warnings:
            logger.warning(f"  Warning: {w}")
    else:
        logger.info("  All validations passed")

    if dry_run:
        logger.info("[DRY RUN] Validation complete. No data was saved.")
        result['success'] = True
        return result

    logger.info("Replacing participant snapshot...")
    result['committed'] = store.save(participants)
    result['success'] = True
    logger.info("Ingestion complete")
    return result


# --- Upload Staging ---
PENDING_ROSTER = "pending_roster"
PENDING_UPLOAD_ID = "pending_upload_id"
PENDING_NAME = "pending_name"


def clear_staged_upload(session) -> None:
    """Drop any staged roster preview from the session."""
    for key in (PENDING_ROSTER, PENDING_UPLOAD_ID, PENDING_NAME):
        session.pop(key, None)


def stage_upload(session, upload, store) -> dict | None:
    """
    Keep a dry-run preview of the selected upload in the session.

    Uploads are told apart by their per-upload file_id, not their name, so a
    corrected file uploaded under the same name replaces the preview.

    Args:
        session: Mutable mapping holding the staged preview (st.session_state)
        upload: Uploaded file with file_id, name and getvalue(), or None
        store: ParticipantStore used for the dry run

    Returns:
        The staged ingest result, or None when nothing awaits commit

    Raises:
        RosterParseError: If the upload cannot be parsed (nothing stays staged)
    """
    if upload is None:
        clear_staged_upload(session)
        return None

    if session.get(PENDING_UPLOAD_ID) != upload.file_id:
        clear_staged_upload(session)
        result = ingest_roster(upload.getvalue(), store, dry_run=True)
        session[PENDING_ROSTER] = result
        session[PENDING_UPLOAD_ID] = upload.file_id
        session[PENDING_NAME] = upload.name

    return session.get(PENDING_ROSTER)


def commit_staged_upload(session, store) -> bool:
    """
    Store the staged roster as the new participant snapshot.

    The upload id stays recorded, so the same selected file is not staged
    again on the next rerun; a new upload gets a new id and a fresh preview.

    Returns:
        True if the snapshot reached the data folder, False if memory only
    """
    pending = session.pop(PENDING_ROSTER)
    session.pop(PENDING_NAME, None)
    logger.info(f"Committing staged roster ({pending['rows']} participants)")
    return store.save(pending['participants'])


def main():
    """CLI interface for roster ingestion."""
    from studylabs.storage import AppState, ParticipantStore

    parser = argparse.ArgumentParser(description="Load a Study Labs roster CSV into the leaderboard")
    parser.add_argument("csv_file", type=Path, help="Roster export (CSV)")
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving")
    args = parser.parse_args()

    print("=" * 60)
    print("Study Labs Roster Ingestion")
    print("=" * 60)

    try:
        data = args.csv_file.read_bytes()
        store = ParticipantStore(AppState(), DATA_FOLDER)
        result = ingest_roster(data, store, dry_run=args.dry_run)
    except OSError as e:
        print(f"\nFILE ERROR: {e}")
        sys.exit(1)
    except RosterParseError as e:
        print(f"\nPARSE ERROR: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("SUCCESS!" if not args.dry_run else "VALID (dry run, nothing saved)")
    print(f"  Rows: {result['rows']}")
    print(f"  Qualified: {result['qualified']}")
    if result['warnings']:
        print(f"  Warnings: {len(result['warnings'])}")
    if not args.dry_run and not result['committed']:
        print("  Note: data folder not writable, snapshot kept in memory only")
    print("=" * 60)


if __name__ == "__main__":
    main()
