"""
LLM-based section translation over the OpenAI chat completions API.

One request translates one section. The prompt asks for a JSON object with
exactly the keys that were sent; the reply is unfenced, parsed and then
validated by ``SectionTranslator.translate_unit`` (key set, placeholders).

The client is resolved when the translator is constructed, either injected
by the caller or built from the stored API key, so a translator instance
is always ready to call.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import openai

from i18ntrans_llms.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT,
    EXCERPT_LENGTH,
    JSON_INDENT,
)
from i18ntrans_llms.errors import ResponseParseError, TranslationServiceError
from i18ntrans_llms.keys import get_organization, require_key
from i18ntrans_llms.translate.base import SectionTranslator, TranslationUnit

logger = logging.getLogger(__name__)

# ``` or ```json at the start, ``` at the end
_LEADING_FENCE = re.compile(r'^```[\w-]*[ \t]*\n?')
_TRAILING_FENCE = re.compile(r'\n?```$')


@dataclass
class LLMConfig:
    """Configuration for LLM translators."""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = DEFAULT_TIMEOUT
    api_key: Optional[str] = None
    organization: Optional[str] = None
    base_url: Optional[str] = None


def build_prompt(unit: TranslationUnit) -> str:
    """Build the translation prompt for one section."""
    payload = json.dumps(unit.strings, indent=JSON_INDENT, ensure_ascii=False)
    return "\n".join([
        "You are a professional translator. Translate the following i18n "
        f"strings from {unit.source_lang} to {unit.target_lang}.",
        "",
        "Rules:",
        "- Translate ONLY the values, preserve the keys exactly as given",
        "- Preserve placeholders like {{name}}, {{count}} and %{name} unchanged, "
        "character for character",
        "- Maintain the same tone and formality level",
        "- Return ONLY valid JSON with the same keys, no surrounding text",
        "",
        f'Section context: "{unit.section}" (related UI strings)',
        "",
        "Input JSON:",
        payload,
        "",
        "Output the translated JSON only, no explanation:",
    ])


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
        cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_response(text: Optional[str], unit: Optional[TranslationUnit] = None) -> dict[str, Any]:
    """Parse a model reply into a JSON object.

    Raises:
        ResponseParseError: If the reply is empty, not JSON, or not an object
    """
    section = unit.section if unit else None
    language = unit.target_lang if unit else None

    if not text or not text.strip():
        raise ResponseParseError(
            "Empty response from OpenAI", section=section, language=language,
        )

    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            "Failed to parse translation response as JSON.\n"
            f"Response: {cleaned[:EXCERPT_LENGTH]}",
            section=section, language=language,
        ) from e

    if not isinstance(data, dict):
        raise ResponseParseError(
            f"Expected a JSON object in the response, got {type(data).__name__}.\n"
            f"Response: {cleaned[:EXCERPT_LENGTH]}",
            section=section, language=language,
        )
    return data


class OpenAISectionTranslator(SectionTranslator):
    """OpenAI GPT-based section translator.

    Usage:
        translator = OpenAISectionTranslator(LLMConfig(model="gpt-4o"))
        translated = translator.translate_unit(unit)

    Raises:
        MissingCredentialError: At construction, when no client is given
            and no API key can be found
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        client: Optional[Any] = None,
        api_key: Optional[str] = None,
        organization: Optional[str] = None,
    ):
        self.config = config or LLMConfig()
        self.client = client if client is not None else self._build_client(
            api_key or self.config.api_key,
            organization or self.config.organization,
        )

    def _build_client(self, api_key: Optional[str], organization: Optional[str]) -> openai.OpenAI:
        api_key = api_key or require_key("openai")
        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "organization": organization or get_organization(),
            "timeout": self.config.timeout,
            # Retry policy belongs to the operator (re-run with --missing-only)
            "max_retries": 0,
        }
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        return openai.OpenAI(**kwargs)

    @property
    def name(self) -> str:
        return f"openai-{self.config.model}"

    def translate_section(self, unit: TranslationUnit) -> dict[str, Any]:
        """Send one section and return the parsed (unvalidated) reply."""
        prompt = build_prompt(unit)
        logger.debug(
            "Requesting %s: section=%s strings=%d -> %s",
            self.config.model, unit.section, len(unit), unit.target_lang,
        )

        try:
            response = self.client.chat.completions.create(
                model=self.config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.OpenAIError as e:
            raise TranslationServiceError(
                f"OpenAI request failed: {e}",
                section=unit.section, language=unit.target_lang,
            ) from e

        content = response.choices[0].message.content if response.choices else None
        return parse_response(content, unit)
