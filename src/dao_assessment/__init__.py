"""DAO candidate assessment.

Validates trait-score assessments of nominated candidates, aggregates them
into per-trait medians, and ranks candidates on a leaderboard.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
