"""
Shared utilities for the Study Labs Leaderboard.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import json
import logging
import re
import shutil
import tempfile
from pathlib import Path

# --- Shared Regex Patterns for Roster Parsing ---
# First http(s):// or www. token inside free text (e.g. a rendered HYPERLINK formula)
URL_RE = re.compile(
    r"https?://[\w\-._~:/?#\[\]@!$&'()*+,;=%]+|(?:www\.)[\w\-._~:/?#\[\]@!$&'()*+,;=%]+",
    re.IGNORECASE,
)

# Already carries a scheme
SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# ISO date: YYYY-MM-DD (a trailing time component is tolerated)
ISO_DATE_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)

# Day-first date: DD/MM/YYYY or DD-MM-YYYY
DAY_FIRST_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- File Operations ---
def _atomic_write(path: Path, suffix: str, write) -> None:
    """Run write(tmp_name) against a temp file, then move it over path."""
    logger = setup_logging(__name__)

    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            delete=False,
            suffix=suffix,
            dir=path.parent  # Same filesystem for atomic move
        ) as tmp:
            tmp_path = Path(tmp.name)
        write(tmp_path)

        shutil.move(str(tmp_path), str(path))
        logger.debug(f"Atomically wrote {path}")

    except Exception:
        if 'tmp_path' in locals() and tmp_path.exists():
            tmp_path.unlink()
        raise


def atomic_write_csv(df, path: Path, **kwargs) -> None:
    """
    Write a DataFrame to CSV atomically using a temporary file.

    This prevents a half-written participant snapshot if the write is interrupted.

    Args:
        df: pandas DataFrame to write
        path: Destination path for the CSV file
        **kwargs: Additional arguments to pass to df.to_csv()
    """
    _atomic_write(path, '.csv', lambda tmp_path: df.to_csv(tmp_path, **kwargs))


def atomic_write_json(data, path: Path) -> None:
    """
    Write a JSON-serializable object atomically using a temporary file.

    Args:
        data: Object to serialize
        path: Destination path for the JSON file
    """
    def write(tmp_path: Path) -> None:
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, sort_keys=True)

    _atomic_write(path, '.json', write)


# --- Validation ---
def validate_input_size(data: bytes | str, max_size: int) -> None:
    """
    Validate that an upload does not exceed maximum size.

    Args:
        data: Raw upload to validate
        max_size: Maximum allowed size in bytes

    Raises:
        ValueError: If input exceeds max_size
    """
    if len(data) > max_size:
        raise ValueError(
            f"Input too large: {len(data):,} bytes. "
            f"Maximum allowed: {max_size:,} bytes"
        )


__all__ = [
    # Logging
    'setup_logging',
    # File operations
    'atomic_write_csv',
    'atomic_write_json',
    # Validation
    'validate_input_size',
    # Roster parsing
    'URL_RE',
    'SCHEME_RE',
    'ISO_DATE_RE',
    'DAY_FIRST_DATE_RE',
]
