"""Database record store using SQLModel."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import Session, SQLModel, col, create_engine, select

from dao_assessment.core.errors import (
    CandidateNotFoundError,
    DuplicateAssessmentError,
    DuplicateCandidateError,
)
from dao_assessment.models import Assessment, Candidate

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


def create_store_engine(database_url: str) -> Engine:
    """Create an engine for the record store and make sure tables exist.

    Args:
        database_url: SQLAlchemy URL, e.g. ``duckdb:///data/assessments.duckdb``
            or ``sqlite:///assessments.db``.

    Returns:
        Engine with all tables created.
    """
    url = make_url(database_url)
    backend = url.get_backend_name()
    in_memory = url.database in (None, "", ":memory:")

    if backend == "sqlite" and in_memory:
        # One shared connection, otherwise every session sees an empty database
        engine = create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    elif backend == "sqlite":
        engine = create_engine(
            database_url,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
    else:
        if not in_memory:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        # Use NullPool to avoid connection pooling issues on Windows
        engine = create_engine(database_url, poolclass=NullPool)

    SQLModel.metadata.create_all(engine)
    logger.info("store_engine_ready", backend=backend, database=url.database or ":memory:")
    return engine


class SQLRecordStore(AsyncRepository):
    """Persist candidates and assessments in SQL tables.

    The assessments table carries a UNIQUE(candidate_id, assessor)
    constraint, so a concurrent duplicate that slips past the lookup still
    fails at commit and surfaces as DuplicateAssessmentError. Candidates are
    unique on their lower-cased address in the same way.

    Inserts hold a write lock so sequence numbers are assigned one at a time.
    """

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)
        self._write_lock = threading.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> SQLRecordStore:
        return cls(create_store_engine(database_url))

    async def insert_candidate(self, candidate: Candidate) -> str:
        """Register a candidate, rejecting a duplicate id or address."""
        data = candidate.model_dump()
        data["address_key"] = data["address"].lower()

        def _insert(session: Session) -> str:
            statement = select(Candidate).where(
                (Candidate.id == data["id"]) | (Candidate.address_key == data["address_key"])
            )
            with self._write_lock:
                if session.exec(statement).first() is not None:
                    raise DuplicateCandidateError(data["id"], data["address"])

                last_seq = session.exec(select(func.max(Candidate.registered_seq))).one()
                record = Candidate.model_validate(data)
                record.registered_seq = (last_seq or 0) + 1
                session.add(record)
                try:
                    session.commit()
                except IntegrityError as e:
                    session.rollback()
                    raise DuplicateCandidateError(data["id"], data["address"]) from e
            return record.id

        candidate_id = await self._run_session(_insert)
        logger.debug("stored_candidate", candidate_id=candidate_id)
        return candidate_id

    async def find_candidate(self, candidate_id: str) -> Candidate | None:
        def _get(session: Session) -> Candidate | None:
            return session.get(Candidate, candidate_id)

        return await self._run_session(_get)

    async def list_active_candidates(self) -> list[Candidate]:
        def _get(session: Session) -> list[Candidate]:
            statement = (
                select(Candidate)
                .where(Candidate.active == True)  # noqa: E712
                .order_by(col(Candidate.registered_seq))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def set_candidate_active(self, candidate_id: str, active: bool) -> None:
        def _update(session: Session) -> None:
            candidate = session.get(Candidate, candidate_id)
            if candidate is None:
                raise CandidateNotFoundError(candidate_id)
            candidate.active = active
            session.add(candidate)
            session.commit()

        await self._run_session(_update)

    async def find_assessment(self, candidate_id: str, assessor: str) -> Assessment | None:
        def _get(session: Session) -> Assessment | None:
            statement = select(Assessment).where(
                Assessment.candidate_id == candidate_id,
                Assessment.assessor == assessor,
            )
            return session.exec(statement).first()

        return await self._run_session(_get)

    async def insert_assessment(self, assessment: Assessment) -> None:
        """Store an assessment; the composite key must be new."""
        data = assessment.model_dump()

        def _insert(session: Session) -> None:
            with self._write_lock:
                last_seq = session.exec(select(func.max(Assessment.seq))).one()
                record = Assessment.model_validate(data)
                record.seq = (last_seq or 0) + 1
                session.add(record)
                try:
                    session.commit()
                except IntegrityError as e:
                    session.rollback()
                    raise DuplicateAssessmentError(data["candidate_id"], data["assessor"]) from e

        await self._run_session(_insert)
        logger.debug("stored_assessment", assessment_id=data["id"])

    async def list_assessments(self, candidate_id: str) -> list[Assessment]:
        def _get(session: Session) -> list[Assessment]:
            statement = (
                select(Assessment)
                .where(Assessment.candidate_id == candidate_id)
                .order_by(col(Assessment.seq))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def list_all_assessments(self) -> list[Assessment]:
        def _get(session: Session) -> list[Assessment]:
            statement = select(Assessment).order_by(col(Assessment.seq))
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def close(self) -> None:
        self._engine.dispose()
