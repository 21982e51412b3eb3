"""Section translators: the interface, a dummy backend and the OpenAI backend."""

from i18ntrans_llms.translate.base import (
    DummyTranslator,
    SectionTranslator,
    TranslationUnit,
    create_translator,
    validate_section_result,
)

__all__ = [
    "DummyTranslator",
    "SectionTranslator",
    "TranslationUnit",
    "create_translator",
    "validate_section_result",
]
