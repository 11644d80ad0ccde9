"""Custom exceptions for configuration and record store errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class UnsupportedBackendError(ConfigurationError):
    """Error when the configured storage backend is unknown."""

    def __init__(self, backend: str) -> None:
        super().__init__(
            f"Unsupported storage backend '{backend}'",
            "Use 'sql' or 'memory'.",
        )


class RecordStoreError(Exception):
    """Base exception for record store integrity failures."""


class DuplicateCandidateError(RecordStoreError):
    """A candidate with the same id or address is already registered."""

    def __init__(self, candidate_id: str, address: str) -> None:
        self.candidate_id = candidate_id
        self.address = address
        super().__init__(f"Candidate '{candidate_id}' ({address}) already exists")


class DuplicateAssessmentError(RecordStoreError):
    """An assessment for the (candidate, assessor) pair is already stored."""

    def __init__(self, candidate_id: str, assessor: str) -> None:
        self.candidate_id = candidate_id
        self.assessor = assessor
        super().__init__(f"Assessor '{assessor}' already assessed '{candidate_id}'")


class CandidateNotFoundError(RecordStoreError):
    """The referenced candidate does not exist in the store."""

    def __init__(self, candidate_id: str) -> None:
        self.candidate_id = candidate_id
        super().__init__(f"Candidate '{candidate_id}' not found")
