"""
Leaderboard Ranking

Modules:
- dates: Completion-date parsing (ISO and day-first formats)
- engine: Tiered comparator, rank() and DataFrame helpers
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name in ("rank", "rank_dataframe", "is_qualifying", "participant_key"):
        from studylabs.ranking import engine
        return getattr(engine, name)
    if name == "parse_completion_date":
        from studylabs.ranking.dates import parse_completion_date
        return parse_completion_date
    if name == "run_ranking":
        from studylabs.ranking.engine import main
        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
