"""Per-trait median aggregation of assessments."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from statistics import median

from dao_assessment.models import TRAITS, Assessment

Score = int | float


def median_score(values: Sequence[int]) -> Score | None:
    """Median of integer scores.

    Odd counts return the middle element unchanged (an int). Even counts
    return the mean of the two middle elements as a float, so half points
    survive: [10, 20] -> 15.0.

    Args:
        values: Trait scores in any order.

    Returns:
        The median, or None for an empty sequence.
    """
    if not values:
        return None
    return median(sorted(values))


@dataclass(frozen=True)
class AggregatedScore:
    """Median trait scores for one candidate.

    Attributes:
        candidate_id: Candidate the scores belong to.
        count: Number of contributing assessments.
        scores: Median per trait, or None when nobody has assessed yet.
        total_score: Sum of the four medians, or None when count is 0.
    """

    candidate_id: str
    count: int
    scores: dict[str, Score] | None = None
    total_score: Score | None = None

    @property
    def has_scores(self) -> bool:
        return self.count > 0

    @property
    def ranking_total(self) -> Score:
        """Total used for ordering; unscored candidates rank as 0."""
        return self.total_score if self.total_score is not None else 0

    def to_dict(self) -> dict[str, object]:
        return {
            "candidateId": self.candidate_id,
            "assessmentCount": self.count,
            "scores": dict(self.scores) if self.scores is not None else None,
            "totalScore": self.ranking_total,
        }


def aggregate(candidate_id: str, assessments: Iterable[Assessment]) -> AggregatedScore:
    """Compute the AggregatedScore for a candidate.

    Assessments belonging to other candidates are ignored.

    Args:
        candidate_id: Candidate to aggregate.
        assessments: Stored assessments, typically all of this candidate's.

    Returns:
        AggregatedScore with per-trait medians and their sum.
    """
    relevant = [a for a in assessments if a.candidate_id == candidate_id]
    if not relevant:
        return AggregatedScore(candidate_id=candidate_id, count=0)

    scores: dict[str, Score] = {
        trait: median_score([getattr(a, trait) for a in relevant]) for trait in TRAITS
    }

    return AggregatedScore(
        candidate_id=candidate_id,
        count=len(relevant),
        scores=scores,
        total_score=sum(scores.values()),
    )
