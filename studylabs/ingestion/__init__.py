"""
Data Ingestion

Modules:
- roster: Parse uploaded roster CSV files into participant records
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "parse_roster":
        from studylabs.ingestion.roster import parse_roster
        return parse_roster
    if name == "ingest_roster":
        from studylabs.ingestion.roster import ingest_roster
        return ingest_roster
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
