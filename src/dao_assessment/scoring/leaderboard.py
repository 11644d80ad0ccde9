"""Leaderboard ranking by summed median trait scores."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from dao_assessment.models import Assessment, Candidate
from dao_assessment.scoring.aggregation import AggregatedScore, aggregate


@dataclass(frozen=True)
class LeaderboardEntry:
    """A ranked candidate with its aggregated score."""

    rank: int
    candidate: Candidate
    score: AggregatedScore

    def to_dict(self) -> dict[str, object]:
        return {
            "rank": self.rank,
            "candidate": candidate_to_dict(self.candidate),
            "assessmentCount": self.score.count,
            "totalScore": self.score.ranking_total,
            "scores": dict(self.score.scores) if self.score.scores is not None else None,
        }


def candidate_to_dict(candidate: Candidate) -> dict[str, object]:
    """Public JSON view of a candidate."""
    return {
        "id": candidate.id,
        "name": candidate.name,
        "address": candidate.address,
        "statement": candidate.statement,
        "nominatedBy": candidate.nominated_by,
        "nominatedAt": candidate.nominated_at.isoformat() if candidate.nominated_at else None,
        "active": candidate.active,
    }


def assessment_to_dict(assessment: Assessment) -> dict[str, object]:
    """Public JSON view of a stored assessment."""
    return {
        "id": assessment.id,
        "candidate": assessment.candidate_id,
        "assessor": assessment.assessor,
        "traits": assessment.traits,
        "feedback": assessment.feedback,
        "signature": assessment.signature,
        "timestamp": assessment.created_at.isoformat() if assessment.created_at else None,
    }


def leaderboard(
    candidates_with_assessments: Iterable[tuple[Candidate, Sequence[Assessment]]],
) -> list[LeaderboardEntry]:
    """Rank candidates by total median score, highest first.

    The sort is stable, so ties (including all unscored candidates, which
    rank with a total of 0) keep the order in which candidates were given.

    Args:
        candidates_with_assessments: (candidate, assessments) pairs in
            registration order.

    Returns:
        Entries with 1-based ranks.
    """
    scored = [
        (candidate, aggregate(candidate.id, assessments))
        for candidate, assessments in candidates_with_assessments
    ]
    ordered = sorted(scored, key=lambda pair: pair[1].ranking_total, reverse=True)
    return [
        LeaderboardEntry(rank=i, candidate=candidate, score=score)
        for i, (candidate, score) in enumerate(ordered, 1)
    ]
