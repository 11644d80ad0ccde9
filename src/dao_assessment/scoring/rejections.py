"""Typed rejection results returned instead of raising."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RejectionKind(StrEnum):
    """Every distinct reason a submission or nomination can be refused."""

    MISSING_FIELD = "MissingField"
    MALFORMED_REQUEST = "MalformedRequest"
    MALFORMED_TRAITS = "MalformedTraits"
    UNKNOWN_CANDIDATE = "UnknownCandidate"
    SELF_ASSESSMENT = "SelfAssessment"
    DUPLICATE_ASSESSMENT = "DuplicateAssessment"
    INVALID_TOTAL = "InvalidTotal"
    TRAIT_BELOW_MINIMUM = "TraitBelowMinimum"
    FEEDBACK_TOO_LONG = "FeedbackTooLong"
    DUPLICATE_CANDIDATE = "DuplicateCandidate"
    NOT_NOMINATOR = "NotNominator"
    WRONG_PHASE = "WrongPhase"


@dataclass(frozen=True)
class Rejection:
    """A refused submission.

    Attributes:
        kind: Machine-readable reason.
        message: Human-readable explanation.
        field: Offending field or trait, when there is exactly one.
    """

    kind: RejectionKind
    message: str
    field: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"kind": self.kind.value, "error": self.message, "field": self.field}
