"""Configuration schemas and loading for DAO assessments."""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DATABASE_URL_ENV = "DAO_ASSESSMENT_DATABASE_URL"
ONCHAIN_FEEDBACK_MAX_LENGTH = 69


class ElectionPhase(StrEnum):
    """Which actions the election currently accepts.

    OPEN accepts nominations and assessments at the same time. The other
    phases follow the on-chain questionnaire. NOMINATION accepts nominations
    and withdrawals. ASSESSMENT accepts assessments. INACTIVE accepts neither.
    """

    OPEN = "open"
    INACTIVE = "inactive"
    NOMINATION = "nomination"
    ASSESSMENT = "assessment"

    @property
    def accepts_nominations(self) -> bool:
        return self in (ElectionPhase.OPEN, ElectionPhase.NOMINATION)

    @property
    def accepts_assessments(self) -> bool:
        return self in (ElectionPhase.OPEN, ElectionPhase.ASSESSMENT)


class RubricConfig(BaseModel):
    """Scoring rules applied to every submission.

    Attributes:
        required_total: Exact sum the four trait scores must reach.
        min_trait_score: Lowest score any single trait may receive.
        feedback_max_length: Maximum feedback length in characters. None means
            unlimited (HTTP deployments); 69 matches the on-chain questionnaire.
        require_statement: Refuse nominations without a statement.
    """

    required_total: int = Field(default=100, ge=1)
    min_trait_score: int = Field(default=5, ge=0)
    feedback_max_length: int | None = Field(default=None, ge=0)
    require_statement: bool = False

    @model_validator(mode="after")
    def validate_reachable_total(self) -> RubricConfig:
        if self.min_trait_score * 4 > self.required_total:
            msg = "min_trait_score * 4 cannot exceed required_total"
            raise ValueError(msg)
        return self


class StorageConfig(BaseModel):
    """Record store backend configuration."""

    backend: Literal["sql", "memory"] = "sql"
    database_url: str | None = None
    output_dir: str = "./data"


class ApiConfig(BaseModel):
    """HTTP gateway settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    rate_limit: str = "100/15minutes"
    write_rate_limit: str = "20/15minutes"
    allowed_origins: list[str] = Field(
        default_factory=lambda: [
            "https://assess.aavegotchidao.cloud",
            "https://aavegotchidao.cloud",
            "http://localhost:3000",
        ]
    )


class CandidateSeed(BaseModel):
    """Default candidate inserted into an empty store."""

    name: str
    address: str
    statement: str = ""
    nominated_by: str = ""
    id: str | None = None

    @field_validator("name", "address")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "Candidate name and address cannot be empty"
            raise ValueError(msg)
        return v.strip()


class AssessmentConfig(BaseModel):
    """Complete service configuration."""

    rubric: RubricConfig = Field(default_factory=RubricConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    phase: ElectionPhase = ElectionPhase.OPEN
    api: ApiConfig = Field(default_factory=ApiConfig)
    candidates: list[CandidateSeed] = Field(default_factory=list)
    slug_max_length: int = Field(default=50, ge=1, le=100)

    def get_database_url(self) -> str:
        """Resolve the database URL from config, environment, or default path."""
        url = self.storage.database_url or os.environ.get(DATABASE_URL_ENV)
        if url:
            return url
        db_path = Path(self.storage.output_dir) / "assessments.duckdb"
        return f"duckdb:///{db_path}"


def load_config(path: str | Path) -> AssessmentConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated AssessmentConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return AssessmentConfig.model_validate(data)
