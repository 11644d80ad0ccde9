from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Candidate(SQLModel, table=True):
    """A nominated candidate. Only the active flag changes after creation."""

    id: str = Field(primary_key=True)
    name: str
    address: str = Field(index=True)
    address_key: str = Field(default="", unique=True, index=True)  # lower-cased address
    statement: str = ""
    nominated_by: str = ""
    nominated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    active: bool = True
    registered_seq: int = Field(default=0, index=True)  # registration order for stable ranking
