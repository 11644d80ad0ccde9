"""Slug generation for candidate identifiers."""

from __future__ import annotations

import re


class SlugGenerator:
    """Generate URL-safe candidate ids from display names.

    Nominations are keyed by the slug of the candidate's name, so the same
    rules must apply everywhere an id is derived.
    """

    def __init__(self, max_length: int | None = 50) -> None:
        """Initialize slug generator.

        Args:
            max_length: Maximum length for generated slugs. Use None to disable truncation.
        """
        self.max_length = max_length

    def slugify(self, value: str) -> str:
        """Generate a URL-safe slug from free text."""
        return self.truncate(self._slugify(value))

    def truncate(self, value: str) -> str:
        """Truncate a value to the configured max length."""
        if self.max_length is None:
            return value
        return value[: self.max_length].rstrip("-")

    @staticmethod
    def _slugify(value: str) -> str:
        return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
