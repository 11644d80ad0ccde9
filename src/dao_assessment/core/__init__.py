"""Core configuration and utilities for DAO assessments."""

from dao_assessment.core.config import (
    DATABASE_URL_ENV,
    ONCHAIN_FEEDBACK_MAX_LENGTH,
    ApiConfig,
    AssessmentConfig,
    CandidateSeed,
    ElectionPhase,
    RubricConfig,
    StorageConfig,
    load_config,
)
from dao_assessment.core.errors import (
    CandidateNotFoundError,
    ConfigurationError,
    DuplicateAssessmentError,
    DuplicateCandidateError,
    RecordStoreError,
    UnsupportedBackendError,
)
from dao_assessment.core.slug import SlugGenerator

__all__ = [
    "DATABASE_URL_ENV",
    "ONCHAIN_FEEDBACK_MAX_LENGTH",
    "ApiConfig",
    "AssessmentConfig",
    "CandidateSeed",
    "ElectionPhase",
    "RubricConfig",
    "StorageConfig",
    "SlugGenerator",
    "load_config",
    "CandidateNotFoundError",
    "ConfigurationError",
    "DuplicateAssessmentError",
    "DuplicateCandidateError",
    "RecordStoreError",
    "UnsupportedBackendError",
]
