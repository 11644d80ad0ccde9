"""Submission validation against the trait rubric."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from dao_assessment.core.config import RubricConfig
from dao_assessment.models import TRAITS, Assessment, Candidate
from dao_assessment.models.assessment import new_assessment_id
from dao_assessment.scoring.rejections import Rejection, RejectionKind

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def coerce_score(value: Any) -> int | None:
    """Convert a submitted trait value to int, or None if it is not an integer.

    Integer strings ("25") and integral floats (25.0) are accepted because
    form and JSON encodings produce them; booleans are not scores.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None


def normalize_assessor(assessor_id: str) -> str:
    """Canonical assessor key. Wallet addresses are case-insensitive hex."""
    return assessor_id.strip().lower()


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


class SubmissionValidator:
    """Validates raw submissions and builds Assessment records.

    The validator never touches storage: the caller fetches the candidate and
    any existing assessment for the pair and passes them in. Checks run in a
    fixed order and the first failure is returned. Identity checks (unknown
    candidate, self-assessment, duplicate) come before any check on the trait
    values, so they win regardless of what was scored.

    Attributes:
        rubric: Scoring rules (required total, per-trait minimum, feedback limit).
    """

    def __init__(self, rubric: RubricConfig | None = None) -> None:
        self.rubric = rubric or RubricConfig()

    def validate_and_build(
        self,
        candidate_id: Any,
        assessor_id: Any,
        traits: Any,
        feedback: str | None = None,
        *,
        candidate: Candidate | None = None,
        existing: Assessment | None = None,
        signature: str | None = None,
    ) -> Assessment | Rejection:
        """Validate one submission.

        Args:
            candidate_id: Id of the candidate being assessed.
            assessor_id: Id or wallet address of the assessor. Stored lower-cased.
            traits: Mapping of the four trait names to scores.
            feedback: Optional free-text feedback.
            candidate: Stored candidate for candidate_id, if any.
            existing: Stored assessment for (candidate_id, assessor_id), if any.
            signature: Optional wallet signature kept with the record.

        Returns:
            A new, unsaved Assessment, or the first Rejection encountered.
        """
        if _is_blank(candidate_id) or _is_blank(assessor_id) or traits is None:
            return Rejection(RejectionKind.MISSING_FIELD, "Missing required fields")
        if not isinstance(candidate_id, str) or not isinstance(assessor_id, str):
            return Rejection(
                RejectionKind.MALFORMED_REQUEST, "Candidate and assessor must be strings"
            )
        candidate_id = candidate_id.strip()
        assessor_id = normalize_assessor(assessor_id)

        if candidate is None or not candidate.active or candidate.id != candidate_id:
            return Rejection(RejectionKind.UNKNOWN_CANDIDATE, "Candidate not found")

        if self._is_self_assessment(assessor_id, candidate):
            return Rejection(RejectionKind.SELF_ASSESSMENT, "Cannot assess yourself")

        if existing is not None:
            return Rejection(
                RejectionKind.DUPLICATE_ASSESSMENT,
                "You have already assessed this candidate",
            )

        scores = self._parse_traits(traits)
        if isinstance(scores, Rejection):
            return scores

        total = sum(scores.values())
        if total != self.rubric.required_total:
            return Rejection(
                RejectionKind.INVALID_TOTAL,
                f"Traits must sum to {self.rubric.required_total} (current: {total})",
            )

        for trait in TRAITS:
            if scores[trait] < self.rubric.min_trait_score:
                return Rejection(
                    RejectionKind.TRAIT_BELOW_MINIMUM,
                    f"Trait {trait} must be at least {self.rubric.min_trait_score} points",
                    field=trait,
                )

        feedback = feedback or ""
        limit = self.rubric.feedback_max_length
        if limit is not None and len(feedback) > limit:
            return Rejection(
                RejectionKind.FEEDBACK_TOO_LONG,
                f"Feedback too long ({limit} max)",
                field="feedback",
            )

        return Assessment(
            id=new_assessment_id(),
            candidate_id=candidate_id,
            assessor=assessor_id,
            feedback=feedback,
            signature=signature or None,
            created_at=datetime.now(UTC),
            **scores,
        )

    @staticmethod
    def _parse_traits(traits: Any) -> dict[str, int] | Rejection:
        if not isinstance(traits, Mapping):
            return Rejection(
                RejectionKind.MALFORMED_TRAITS, "Traits must be a mapping", field="traits"
            )

        missing = [trait for trait in TRAITS if traits.get(trait) is None]
        if missing:
            return Rejection(
                RejectionKind.MISSING_FIELD,
                f"Missing trait scores: {', '.join(missing)}",
                field=f"traits.{missing[0]}",
            )

        unknown = sorted(str(key) for key in traits if key not in TRAITS)
        if unknown:
            return Rejection(
                RejectionKind.MALFORMED_TRAITS,
                f"Unknown traits: {', '.join(unknown)}",
                field=f"traits.{unknown[0]}",
            )

        scores: dict[str, int] = {}
        for trait in TRAITS:
            score = coerce_score(traits[trait])
            if score is None:
                return Rejection(
                    RejectionKind.MALFORMED_TRAITS,
                    f"Trait {trait} must be an integer",
                    field=trait,
                )
            scores[trait] = score
        return scores

    @staticmethod
    def _is_self_assessment(assessor_id: str, candidate: Candidate) -> bool:
        if assessor_id == candidate.id.lower():
            return True
        return bool(candidate.address) and assessor_id == candidate.address.lower()
