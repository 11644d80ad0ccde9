"""Scoring core: submission validation, median aggregation, and leaderboard ranking."""

from dao_assessment.scoring.aggregation import AggregatedScore, aggregate, median_score
from dao_assessment.scoring.leaderboard import (
    LeaderboardEntry,
    assessment_to_dict,
    candidate_to_dict,
    leaderboard,
)
from dao_assessment.scoring.rejections import Rejection, RejectionKind
from dao_assessment.scoring.validator import SubmissionValidator, coerce_score, normalize_assessor

__all__ = [
    "AggregatedScore",
    "LeaderboardEntry",
    "Rejection",
    "RejectionKind",
    "SubmissionValidator",
    "aggregate",
    "assessment_to_dict",
    "candidate_to_dict",
    "coerce_score",
    "leaderboard",
    "median_score",
    "normalize_assessor",
]
