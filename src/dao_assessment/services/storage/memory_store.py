"""In-memory record store."""

from __future__ import annotations

from typing import TypeVar

import structlog

from dao_assessment.core.errors import (
    CandidateNotFoundError,
    DuplicateAssessmentError,
    DuplicateCandidateError,
)
from dao_assessment.models import Assessment, Candidate

logger = structlog.get_logger()

RecordT = TypeVar("RecordT", Candidate, Assessment)


def _clone(record: RecordT) -> RecordT:
    """Detached copy of a table model."""
    return type(record).model_validate(record.model_dump())


class InMemoryRecordStore:
    """Record store backed by plain dicts and lists.

    No method awaits between its uniqueness check and its write, so each
    insert is atomic with respect to other tasks on the same event loop.
    Records are copied on the way in and out.
    """

    def __init__(self) -> None:
        self._candidates: dict[str, Candidate] = {}
        self._addresses: dict[str, str] = {}
        self._assessments: list[Assessment] = []
        self._assessment_keys: set[tuple[str, str]] = set()

    async def insert_candidate(self, candidate: Candidate) -> str:
        address_key = candidate.address.lower()
        if candidate.id in self._candidates or address_key in self._addresses:
            raise DuplicateCandidateError(candidate.id, candidate.address)

        stored = _clone(candidate)
        stored.address_key = address_key
        stored.registered_seq = len(self._candidates) + 1
        self._candidates[stored.id] = stored
        self._addresses[address_key] = stored.id
        logger.debug("stored_candidate", candidate_id=stored.id)
        return stored.id

    async def find_candidate(self, candidate_id: str) -> Candidate | None:
        candidate = self._candidates.get(candidate_id)
        return _clone(candidate) if candidate else None

    async def list_active_candidates(self) -> list[Candidate]:
        return [_clone(c) for c in self._candidates.values() if c.active]

    async def set_candidate_active(self, candidate_id: str, active: bool) -> None:
        candidate = self._candidates.get(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)
        candidate.active = active

    async def find_assessment(self, candidate_id: str, assessor: str) -> Assessment | None:
        for assessment in self._assessments:
            if assessment.candidate_id == candidate_id and assessment.assessor == assessor:
                return _clone(assessment)
        return None

    async def insert_assessment(self, assessment: Assessment) -> None:
        key = (assessment.candidate_id, assessment.assessor)
        if key in self._assessment_keys:
            raise DuplicateAssessmentError(*key)

        stored = _clone(assessment)
        stored.seq = len(self._assessments) + 1
        self._assessments.append(stored)
        self._assessment_keys.add(key)
        logger.debug("stored_assessment", assessment_id=stored.id)

    async def list_assessments(self, candidate_id: str) -> list[Assessment]:
        return [_clone(a) for a in self._assessments if a.candidate_id == candidate_id]

    async def list_all_assessments(self) -> list[Assessment]:
        return [_clone(a) for a in self._assessments]
