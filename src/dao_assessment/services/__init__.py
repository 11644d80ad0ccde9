from dao_assessment.services.assessment import (
    AssessmentService,
    AssessmentStats,
    CandidateResults,
    FeedbackEntry,
    LeaderboardResult,
)

__all__ = [
    "AssessmentService",
    "AssessmentStats",
    "CandidateResults",
    "FeedbackEntry",
    "LeaderboardResult",
]
