"""Record store protocol consumed by the assessment service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dao_assessment.models import Assessment, Candidate


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for candidate and assessment persistence.

    Implementations must enforce both uniqueness rules themselves: one
    candidate per address, and one assessment per (candidate, assessor).
    The check and the insert have to be atomic, because concurrent
    submissions from the same assessor are only serialized here.
    """

    async def insert_candidate(self, candidate: Candidate) -> str:
        """Register a candidate.

        Args:
            candidate: Candidate to store.

        Returns:
            The stored candidate id.

        Raises:
            DuplicateCandidateError: If the id or address is already registered.
        """
        ...

    async def find_candidate(self, candidate_id: str) -> Candidate | None:
        """Look up a candidate by id, active or not."""
        ...

    async def list_active_candidates(self) -> list[Candidate]:
        """Active candidates in registration order."""
        ...

    async def set_candidate_active(self, candidate_id: str, active: bool) -> None:
        """Toggle the active flag.

        Raises:
            CandidateNotFoundError: If no candidate has this id.
        """
        ...

    async def find_assessment(self, candidate_id: str, assessor: str) -> Assessment | None:
        """Look up the assessment for a (candidate, assessor) pair."""
        ...

    async def insert_assessment(self, assessment: Assessment) -> None:
        """Store an assessment.

        Raises:
            DuplicateAssessmentError: If the pair already has an assessment.
        """
        ...

    async def list_assessments(self, candidate_id: str) -> list[Assessment]:
        """A candidate's assessments in insertion order."""
        ...

    async def list_all_assessments(self) -> list[Assessment]:
        """Every stored assessment in insertion order."""
        ...
