import secrets
from datetime import UTC, datetime

from sqlalchemy import Column, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel

TRAITS: tuple[str, ...] = ("technical", "reliability", "communication", "values")


def new_assessment_id() -> str:
    """128-bit random hex token."""
    return secrets.token_hex(16)


class Assessment(SQLModel, table=True):
    """One assessor's trait scores for one candidate."""

    __table_args__ = (
        UniqueConstraint("candidate_id", "assessor", name="uq_assessment_candidate_assessor"),
    )

    id: str = Field(default_factory=new_assessment_id, primary_key=True)
    candidate_id: str = Field(index=True)
    assessor: str = Field(index=True)
    technical: int
    reliability: int
    communication: int
    values: int = Field(sa_column=Column("values_score", Integer, nullable=False))
    feedback: str = ""
    signature: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    seq: int = Field(default=0, index=True)  # insertion order within the store

    @property
    def traits(self) -> dict[str, int]:
        return {trait: getattr(self, trait) for trait in TRAITS}
