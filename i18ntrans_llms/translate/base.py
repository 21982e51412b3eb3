"""
Base translator interface and implementations.

This module defines:
- TranslationUnit, the request sent for one section
- Abstract SectionTranslator interface that all backends implement
- Shared validation of a section's reply (key set and placeholders)
- DummyTranslator for dry runs and tests

Design Philosophy:
- Translators are stateless: each call receives the whole unit
- A backend only has to produce a mapping; validation is shared
- Nothing here retries; errors go straight back to the caller
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from i18ntrans_llms.errors import (
    KeySetMismatchError,
    PlaceholderMismatchError,
    ResponseParseError,
)
from i18ntrans_llms.placeholders import PLACEHOLDER_PATTERN, validate_placeholders
from i18ntrans_llms.tree import FlatStrings


@dataclass(frozen=True)
class TranslationUnit:
    """One section of strings to translate in a single request.

    Attributes:
        section: Top-level key the strings belong to (context for the model)
        strings: Remainder key -> source text
        source_lang: Source language tag, e.g. ``pt-BR``
        target_lang: Target language tag, e.g. ``es-AR``
    """
    section: str
    strings: FlatStrings
    source_lang: str
    target_lang: str

    def __len__(self) -> int:
        return len(self.strings)


def validate_section_result(unit: TranslationUnit, translated: dict) -> FlatStrings:
    """Check a reply against the unit it answers.

    Args:
        unit: The unit that was sent
        translated: Parsed reply (values may be any JSON type)

    Returns:
        The reply as a FlatStrings in the unit's key order

    Raises:
        KeySetMismatchError: If keys were dropped, added or renamed
        ResponseParseError: If a translated value is not a string
        PlaceholderMismatchError: If a value lost a placeholder token
    """
    expected = sorted(unit.strings)
    actual = sorted(translated)
    if expected != actual:
        raise KeySetMismatchError(
            expected, actual,
            section=unit.section, language=unit.target_lang,
        )

    result: FlatStrings = {}
    for key in unit.strings:
        value = translated[key]
        if not isinstance(value, str):
            raise ResponseParseError(
                f"Expected a string for key '{key}', got {type(value).__name__}",
                section=unit.section, language=unit.target_lang,
            )
        result[key] = value

    problems = validate_placeholders(unit.strings, result)
    if problems:
        raise PlaceholderMismatchError(
            problems, section=unit.section, language=unit.target_lang,
        )
    return result


class SectionTranslator(ABC):
    """Abstract base class for all translation backends.

    Subclasses implement ``translate_section``; callers use
    ``translate_unit``, which also validates the reply.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the translator name (e.g., 'openai-gpt-4o', 'dummy')."""
        pass

    @abstractmethod
    def translate_section(self, unit: TranslationUnit) -> dict:
        """Translate every value of a unit.

        Returns:
            Mapping with the unit's keys and translated values
        """
        pass

    def translate_unit(self, unit: TranslationUnit) -> FlatStrings:
        """Translate a unit and validate the result."""
        if not unit.strings:
            return {}
        return validate_section_result(unit, self.translate_section(unit))


class DummyTranslator(SectionTranslator):
    """A dummy translator for testing.

    Modes:
    - 'echo': Return the values unchanged
    - 'upper': Uppercase the text around placeholders
    - 'prefix': Add a [target-lang] prefix
    """

    def __init__(self, mode: str = "prefix"):
        self.mode = mode
        self.calls: list[TranslationUnit] = []

    @property
    def name(self) -> str:
        return f"dummy-{self.mode}"

    def _convert(self, text: str, target_lang: str) -> str:
        if self.mode == "echo":
            return text
        if self.mode == "upper":
            # Placeholders are identifiers and must keep their case
            parts = PLACEHOLDER_PATTERN.split(text)
            tokens = PLACEHOLDER_PATTERN.findall(text)
            out = [parts[0].upper()]
            for token, part in zip(tokens, parts[1:]):
                out.append(token)
                out.append(part.upper())
            return "".join(out)
        return f"[{target_lang}] {text}"

    def translate_section(self, unit: TranslationUnit) -> dict:
        self.calls.append(unit)
        return {
            key: self._convert(value, unit.target_lang)
            for key, value in unit.strings.items()
        }


def create_translator(backend: str, **kwargs) -> SectionTranslator:
    """Factory function to create a translator by name.

    Args:
        backend: Translator backend name ('openai', 'dummy', ...)
        **kwargs: Backend-specific arguments

    Supported backends and aliases:
        - openai, gpt: OpenAI chat models (``model``, ``api_key``,
          ``organization``, ``config`` or ``client`` may be passed)
        - dummy, echo, test: Offline test translator
    """
    backend_lower = backend.lower().replace("_", "-")

    if backend_lower in ("dummy", "echo", "test"):
        mode = kwargs.get("mode", "echo" if backend_lower == "echo" else "prefix")
        return DummyTranslator(mode=mode)

    elif backend_lower in ("openai", "gpt"):
        from i18ntrans_llms.translate.llm import LLMConfig, OpenAISectionTranslator
        config = kwargs.get("config")
        if config is None:
            config = LLMConfig(**{
                k: kwargs[k] for k in ("model", "temperature", "timeout") if k in kwargs
            })
        return OpenAISectionTranslator(
            config=config,
            client=kwargs.get("client"),
            api_key=kwargs.get("api_key"),
            organization=kwargs.get("organization"),
        )

    else:
        available = ["openai", "dummy"]
        raise ValueError(
            f"Unknown translator backend: {backend}. "
            f"Available backends: {', '.join(available)}"
        )
