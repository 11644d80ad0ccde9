"""Assessment service: the seam between gateways and the record store."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from dao_assessment.core.config import CandidateSeed, ElectionPhase, RubricConfig
from dao_assessment.core.errors import DuplicateAssessmentError, DuplicateCandidateError
from dao_assessment.core.slug import SlugGenerator
from dao_assessment.models import Assessment, Candidate
from dao_assessment.scoring import (
    AggregatedScore,
    LeaderboardEntry,
    Rejection,
    RejectionKind,
    SubmissionValidator,
    aggregate,
    candidate_to_dict,
    leaderboard,
    normalize_assessor,
)
from dao_assessment.services.storage import RecordStore

logger = structlog.get_logger()


def _short(identifier: str) -> str:
    return identifier[:8]


@dataclass(frozen=True)
class FeedbackEntry:
    """Non-empty feedback left on a candidate."""

    text: str
    timestamp: datetime

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "timestamp": self.timestamp.isoformat()}


@dataclass(frozen=True)
class CandidateResults:
    """Aggregated scores and feedback for one candidate."""

    candidate: Candidate
    score: AggregatedScore
    feedback: list[FeedbackEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "candidate": candidate_to_dict(self.candidate),
            "assessmentCount": self.score.count,
            "scores": dict(self.score.scores) if self.score.scores is not None else None,
            "totalScore": self.score.total_score,
        }
        if self.score.has_scores:
            data["feedback"] = [entry.to_dict() for entry in self.feedback]
        else:
            data["message"] = "No assessments yet"
        return data


@dataclass(frozen=True)
class LeaderboardResult:
    """Ranked candidates plus the overall assessment count."""

    entries: list[LeaderboardEntry]
    total_assessments: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [entry.to_dict() for entry in self.entries],
            "totalAssessments": self.total_assessments,
        }


@dataclass(frozen=True)
class AssessmentStats:
    """Participation counters."""

    total_candidates: int
    total_assessments: int
    unique_assessors: int

    @property
    def average_per_candidate(self) -> str:
        """Assessments per active candidate, one decimal place."""
        if self.total_candidates == 0:
            return "0"
        return f"{self.total_assessments / self.total_candidates:.1f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCandidates": self.total_candidates,
            "totalAssessments": self.total_assessments,
            "uniqueAssessors": self.unique_assessors,
            "averageAssessmentsPerCandidate": self.average_per_candidate,
        }


class AssessmentService:
    """Validates, stores, and aggregates candidate assessments.

    Every outcome a caller can fix (bad input, duplicate, unknown candidate)
    comes back as a Rejection. Only store failures other than the uniqueness
    rules propagate as exceptions.
    """

    def __init__(
        self,
        store: RecordStore,
        rubric: RubricConfig | None = None,
        slugs: SlugGenerator | None = None,
        phase: ElectionPhase = ElectionPhase.OPEN,
    ) -> None:
        """Initialize the service.

        Args:
            store: Record store for candidates and assessments.
            rubric: Scoring rules. Defaults to 100 points, 5 minimum, no feedback limit.
            slugs: Generator for candidate ids derived from names.
            phase: Election phase gating nominations and assessments.
        """
        self.store = store
        self.validator = SubmissionValidator(rubric)
        self.rubric = self.validator.rubric
        self.slugs = slugs or SlugGenerator()
        self.phase = phase

    def _wrong_phase(self) -> Rejection:
        return Rejection(RejectionKind.WRONG_PHASE, "Wrong phase")

    # ==================== Assessments ====================

    async def submit(
        self,
        candidate_id: Any,
        assessor_id: Any,
        traits: Any,
        feedback: str | None = None,
        signature: str | None = None,
    ) -> Assessment | Rejection:
        """Validate a submission and store it if accepted."""
        if not self.phase.accepts_assessments:
            logger.info("assessment_rejected", candidate=candidate_id, phase=self.phase.value)
            return self._wrong_phase()

        candidate = None
        existing = None
        if isinstance(candidate_id, str) and candidate_id.strip():
            candidate = await self.store.find_candidate(candidate_id.strip())
            if isinstance(assessor_id, str) and assessor_id.strip():
                existing = await self.store.find_assessment(
                    candidate_id.strip(), normalize_assessor(assessor_id)
                )

        result = self.validator.validate_and_build(
            candidate_id,
            assessor_id,
            traits,
            feedback,
            candidate=candidate,
            existing=existing,
            signature=signature,
        )
        if isinstance(result, Rejection):
            logger.info(
                "assessment_rejected",
                candidate=candidate_id,
                kind=result.kind.value,
                reason=result.message,
            )
            return result

        try:
            await self.store.insert_assessment(result)
        except DuplicateAssessmentError:
            logger.warning(
                "assessment_race_rejected",
                candidate=result.candidate_id,
                assessor=_short(result.assessor),
            )
            return Rejection(
                RejectionKind.DUPLICATE_ASSESSMENT,
                "You have already assessed this candidate",
            )

        logger.info(
            "assessment_accepted",
            assessment_id=result.id,
            candidate=result.candidate_id,
            assessor=_short(result.assessor),
        )
        return result

    # ==================== Candidates ====================

    async def nominate(
        self,
        name: str | None,
        address: str | None,
        statement: str | None = None,
        nominated_by: str | None = None,
        candidate_id: str | None = None,
    ) -> Candidate | Rejection:
        """Register a new candidate keyed by the slug of its name."""
        if not self.phase.accepts_nominations:
            return self._wrong_phase()
        if not name or not name.strip() or not address or not address.strip():
            return Rejection(RejectionKind.MISSING_FIELD, "Name and address are required")
        if self.rubric.require_statement and not (statement or "").strip():
            return Rejection(RejectionKind.MISSING_FIELD, "Empty statement", field="statement")

        return await self._register(name, address, statement, nominated_by, candidate_id)

    async def _register(
        self,
        name: str,
        address: str,
        statement: str | None,
        nominated_by: str | None,
        candidate_id: str | None,
    ) -> Candidate | Rejection:
        new_id = (candidate_id or "").strip() or self.slugs.slugify(name)
        if not new_id:
            return Rejection(
                RejectionKind.MISSING_FIELD,
                "Name must contain at least one letter or digit",
                field="name",
            )

        candidate = Candidate(
            id=new_id,
            name=name.strip(),
            address=address.strip(),
            statement=(statement or "").strip(),
            nominated_by=(nominated_by or "").strip(),
            nominated_at=datetime.now(UTC),
            active=True,
        )
        try:
            await self.store.insert_candidate(candidate)
        except DuplicateCandidateError:
            return Rejection(
                RejectionKind.DUPLICATE_CANDIDATE,
                "Candidate with this address already exists",
            )

        logger.info("candidate_nominated", candidate_id=new_id, name=candidate.name)
        return candidate

    async def withdraw(self, candidate_id: str, requested_by: str | None) -> Candidate | Rejection:
        """Deactivate a nomination; only its nominator may do this."""
        if not self.phase.accepts_nominations:
            return self._wrong_phase()
        if not requested_by or not requested_by.strip():
            return Rejection(RejectionKind.MISSING_FIELD, "Missing required fields")

        candidate = await self.store.find_candidate(candidate_id)
        if candidate is None or not candidate.active:
            return Rejection(RejectionKind.UNKNOWN_CANDIDATE, "Candidate not found")

        if not candidate.nominated_by or (
            candidate.nominated_by.lower() != requested_by.strip().lower()
        ):
            return Rejection(RejectionKind.NOT_NOMINATOR, "Not nominator")

        await self.store.set_candidate_active(candidate_id, False)
        candidate.active = False
        logger.info("candidate_withdrawn", candidate_id=candidate_id)
        return candidate

    async def seed_candidates(self, seeds: Iterable[CandidateSeed]) -> int:
        """Insert default candidates into an empty store.

        Seeds come from configuration, so the phase and statement rules for
        public nominations do not apply.

        Returns:
            Number of candidates inserted.
        """
        if await self.store.list_active_candidates():
            return 0

        inserted = 0
        for seed in seeds:
            result = await self._register(
                seed.name, seed.address, seed.statement, seed.nominated_by, seed.id
            )
            if isinstance(result, Rejection):
                logger.warning("seed_candidate_skipped", name=seed.name, reason=result.message)
                continue
            inserted += 1

        if inserted:
            logger.info("default_candidates_inserted", count=inserted)
        return inserted

    async def list_candidates(self) -> list[Candidate]:
        return await self.store.list_active_candidates()

    async def get_candidate(self, candidate_id: str) -> Candidate | None:
        candidate = await self.store.find_candidate(candidate_id)
        if candidate is None or not candidate.active:
            return None
        return candidate

    # ==================== Results ====================

    async def candidate_results(self, candidate_id: str) -> CandidateResults | None:
        """Median scores and feedback for an active candidate, or None."""
        candidate = await self.get_candidate(candidate_id)
        if candidate is None:
            return None

        assessments = await self.store.list_assessments(candidate_id)
        feedback = [
            FeedbackEntry(text=a.feedback, timestamp=a.created_at)
            for a in assessments
            if a.feedback
        ]
        return CandidateResults(
            candidate=candidate,
            score=aggregate(candidate_id, assessments),
            feedback=feedback,
        )

    async def leaderboard(self) -> LeaderboardResult:
        """Rank every active candidate by total median score."""
        candidates = await self.store.list_active_candidates()
        all_assessments = await self.store.list_all_assessments()

        by_candidate: dict[str, list[Assessment]] = {c.id: [] for c in candidates}
        for assessment in all_assessments:
            if assessment.candidate_id in by_candidate:
                by_candidate[assessment.candidate_id].append(assessment)

        entries = leaderboard((c, by_candidate[c.id]) for c in candidates)
        return LeaderboardResult(entries=entries, total_assessments=len(all_assessments))

    async def list_assessments(self) -> list[Assessment]:
        """Every stored assessment in submission order."""
        return await self.store.list_all_assessments()

    async def stats(self) -> AssessmentStats:
        candidates = await self.store.list_active_candidates()
        assessments = await self.store.list_all_assessments()
        return AssessmentStats(
            total_candidates=len(candidates),
            total_assessments=len(assessments),
            unique_assessors=len({a.assessor for a in assessments}),
        )
