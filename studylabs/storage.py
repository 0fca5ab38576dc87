"""
Record Stores

Two independent stores back the leaderboard:
- ParticipantStore: the current roster snapshot (CSV)
- OverrideStore: administrator-pinned ranks, email -> rank (JSON)

Both are replaced wholesale on every update; there is no partial-update API
apart from removing a single override. Files are written atomically. When
the data folder cannot be written, the latest snapshot is still served from
an AppState that the caller creates once per process and passes in.
"""

import json
import numbers
from pathlib import Path

import pandas as pd

from studylabs.config import OVERRIDES_FILE, PARTICIPANT_COLUMNS, PARTICIPANTS_FILE
from studylabs.utils import atomic_write_csv, atomic_write_json, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


class InvalidOverrideError(ValueError):
    """Raised when a fixed ranking is not a positive integer or has no email"""
    pass


class AppState:
    """
    Process-scoped fallback state shared by the stores.

    Holds the last snapshot written through each store, and remembers which
    stores could only write to memory so reads keep returning the newer data.
    """

    def __init__(self):
        self.participants: list[dict] = []
        self.overrides: dict[str, int] = {}
        self.unsaved: set[str] = set()


# --- Override Validation ---
def normalize_email(email) -> str:
    """Trim and lower-case an override key."""
    key = str(email if email is not None else "").strip().lower()
    if not key:
        raise InvalidOverrideError("Fixed ranking needs an email")
    return key


def validate_override_value(value) -> int:
    """
    Check a fixed ranking value.

    Args:
        value: Candidate rank

    Returns:
        The rank as int

    Raises:
        InvalidOverrideError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidOverrideError(f"Invalid ranking value: {value!r}")
    if isinstance(value, numbers.Integral):
        rank = int(value)
    elif float(value).is_integer():
        rank = int(value)
    else:
        raise InvalidOverrideError(f"Invalid ranking value: {value!r}")

    if rank < 1:
        raise InvalidOverrideError(f"Ranking must be 1 or higher, got {rank}")
    return rank


def normalize_overrides(mapping) -> dict[str, int]:
    """Validate a whole email -> rank mapping. Raises InvalidOverrideError."""
    if not isinstance(mapping, dict):
        raise InvalidOverrideError("Fixed rankings must be a mapping of email to rank")
    return {normalize_email(k): validate_override_value(v) for k, v in mapping.items()}


class _FileStore:
    """Shared load/save plumbing: file first, AppState as fallback."""

    name = ""

    def __init__(self, state: AppState, folder: Path | None = None, filename: str = ""):
        self.state = state
        self.path = Path(folder) / filename if folder is not None else None

    def _read_file(self):
        raise NotImplementedError

    def _write_file(self, snapshot) -> None:
        raise NotImplementedError

    def _memory(self):
        raise NotImplementedError

    def _remember(self, snapshot) -> None:
        raise NotImplementedError

    def _load(self):
        if self.path is not None and self.name not in self.state.unsaved and self.path.exists():
            try:
                return self._read_file()
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read {self.path}, using in-memory {self.name}: {e}")
        return self._memory()

    def _save(self, snapshot) -> bool:
        self._remember(snapshot)

        if self.path is None:
            self.state.unsaved.add(self.name)
            return False

        try:
            self._write_file(snapshot)
        except OSError as e:
            logger.warning(f"Could not write {self.path}, keeping {self.name} in memory: {e}")
            self.state.unsaved.add(self.name)
            return False

        self.state.unsaved.discard(self.name)
        return True


class ParticipantStore(_FileStore):
    """Full participant snapshot, persisted as CSV."""

    name = "participants"

    def __init__(self, state: AppState, folder: Path | None = None):
        super().__init__(state, folder, PARTICIPANTS_FILE)

    def load(self) -> list[dict]:
        """Return a copy of the current participant snapshot."""
        return self._load()

    def save(self, participants) -> bool:
        """
        Replace the participant snapshot.

        Returns:
            True if the snapshot reached the data folder, False if it is
            only held in memory
        """
        snapshot = [dict(p) for p in participants]
        saved = self._save(snapshot)
        logger.info(f"Stored {len(snapshot)} participants ({'file' if saved else 'memory'})")
        return saved

    def _read_file(self) -> list[dict]:
        df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        for col in PARTICIPANT_COLUMNS:
            if col not in df.columns:
                df[col] = ""
        df = df[PARTICIPANT_COLUMNS]

        for col in ("SkillBadges", "ArcadeGames"):
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).clip(lower=0).astype(int)

        records = df.to_dict("records")
        for record in records:
            record["CompletionDate"] = record["CompletionDate"] or None
        return records

    def _write_file(self, snapshot) -> None:
        atomic_write_csv(pd.DataFrame(snapshot, columns=PARTICIPANT_COLUMNS), self.path, index=False)

    def _memory(self) -> list[dict]:
        return [dict(p) for p in self.state.participants]

    def _remember(self, snapshot) -> None:
        self.state.participants = snapshot


class OverrideStore(_FileStore):
    """Fixed rankings (email -> rank), persisted as JSON."""

    name = "overrides"

    def __init__(self, state: AppState, folder: Path | None = None):
        super().__init__(state, folder, OVERRIDES_FILE)

    def load(self) -> dict[str, int]:
        """Return a copy of the current email -> rank mapping."""
        return self._load()

    def save(self, mapping) -> bool:
        """
        Validate and replace the whole mapping.

        Raises:
            InvalidOverrideError: If any key or value is invalid (nothing is stored)
        """
        snapshot = normalize_overrides(mapping)
        saved = self._save(snapshot)
        logger.info(f"Stored {len(snapshot)} fixed rankings ({'file' if saved else 'memory'})")
        return saved

    def set(self, email, value) -> bool:
        """Pin one participant to a rank, keeping the other overrides."""
        mapping = self.load()
        mapping[normalize_email(email)] = validate_override_value(value)
        return self.save(mapping)

    def delete(self, email) -> bool:
        """
        Remove the override for one email.

        Returns:
            True if an override existed and was removed
        """
        key = str(email if email is not None else "").strip().lower()
        mapping = self.load()
        if key not in mapping:
            return False
        del mapping[key]
        self.save(mapping)
        return True

    def _read_file(self) -> dict[str, int]:
        with open(self.path, encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError("expected a JSON object")

        mapping = {}
        for email, value in raw.items():
            try:
                mapping[normalize_email(email)] = validate_override_value(value)
            except InvalidOverrideError as e:
                logger.warning(f"Skipping stored fixed ranking for {email!r}: {e}")
        return mapping

    def _write_file(self, snapshot) -> None:
        atomic_write_json(snapshot, self.path)

    def _memory(self) -> dict[str, int]:
        return dict(self.state.overrides)

    def _remember(self, snapshot) -> None:
        self.state.overrides = snapshot
