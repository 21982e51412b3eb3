"""
i18ntrans-llms: batch translation of i18n JSON locale files with LLMs

Translates a nested locale file into several languages, one request per
top-level section, keeping keys and {{placeholders}} intact. Missing-only
mode re-translates just the keys an existing output lacks.

License: MIT
"""

__version__ = "0.1.0"

from i18ntrans_llms.pipeline import PipelineConfig, PipelineResult, TranslationPipeline
from i18ntrans_llms.tree import flatten, unflatten

__all__ = [
    "PipelineConfig",
    "PipelineResult",
    "TranslationPipeline",
    "flatten",
    "unflatten",
]
