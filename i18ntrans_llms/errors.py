"""
Error types raised by i18ntrans-llms.

Every error below is fatal to a run: nothing is retried automatically.
The recovery path is to re-run, ideally with ``--missing-only`` so that
keys which were already written are not sent again.
"""

from __future__ import annotations

from typing import Optional


class I18nTransError(Exception):
    """Base class for all i18ntrans-llms errors."""


class InputNotFoundError(I18nTransError):
    """The input locale file (or a directory to scan) does not exist or cannot be read."""


class InvalidInputShapeError(I18nTransError):
    """A locale file is not a JSON object, or holds unsupported values."""


class MissingCredentialError(I18nTransError):
    """No API key is available for the completion service."""


class ClientNotInitializedError(I18nTransError):
    """A translation was requested without a configured translator."""


class StructuralConflictError(I18nTransError):
    """Two flat keys imply incompatible nesting at the same path."""

    def __init__(self, key: str, conflicting: str):
        self.key = key
        self.conflicting = conflicting
        super().__init__(
            f"Key '{key}' conflicts with '{conflicting}': "
            "a path cannot be both a value and a group"
        )


class OutputWriteError(I18nTransError):
    """Persisting a translated locale file failed."""


class TranslationError(I18nTransError):
    """A single translation unit failed.

    ``section`` and ``language`` are filled in by whoever knows them,
    usually the pipeline, so the final message names the failing unit.
    """

    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        language: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.section = section
        self.language = language

    def __str__(self) -> str:
        where = []
        if self.section is not None:
            where.append(f"section '{self.section}'")
        if self.language is not None:
            where.append(f"language '{self.language}'")
        if not where:
            return self.message
        return f"[{', '.join(where)}] {self.message}"


class ResponseParseError(TranslationError):
    """The service reply could not be parsed as a JSON object."""


class KeySetMismatchError(TranslationError):
    """The reply does not carry exactly the keys that were sent."""

    def __init__(
        self,
        expected: list[str],
        actual: list[str],
        section: Optional[str] = None,
        language: Optional[str] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Translation response keys don't match input keys.\n"
            f"Expected: {', '.join(expected)}\n"
            f"Got: {', '.join(actual)}",
            section=section,
            language=language,
        )


class PlaceholderMismatchError(TranslationError):
    """A placeholder token was dropped or altered in a translated value."""

    def __init__(
        self,
        problems: dict[str, list[str]],
        section: Optional[str] = None,
        language: Optional[str] = None,
    ):
        self.problems = problems
        details = "; ".join(
            f"{key}: {', '.join(tokens)}" for key, tokens in problems.items()
        )
        super().__init__(
            f"Placeholders missing from translation ({details})",
            section=section,
            language=language,
        )


class TranslationServiceError(TranslationError):
    """The completion service call itself failed (network, auth, timeout)."""
