"""
Main translation pipeline for i18ntrans-llms.

This module orchestrates the complete workflow for one source locale file:
1. Load and flatten the source tree
2. Group flat keys into sections (one request per section)
3. For each target language, in order:
   a. In missing-only mode, load the existing output and keep only the
      keys it lacks (skip the language when nothing is missing)
   b. Translate the sections one after another
   c. Reassemble, merge with the existing output, write the file

Design Philosophy:
- Strictly sequential: one request in flight, languages and sections in
  the order they were first seen
- Fail fast: the first error aborts the run; a language's file is only
  written after all of its sections succeeded
- Progress callbacks for CLI integration
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from i18ntrans_llms.config import DEFAULT_MODEL
from i18ntrans_llms.diff import missing_for_target
from i18ntrans_llms.errors import ClientNotInitializedError, TranslationError
from i18ntrans_llms.sections import (
    GroupedStrings,
    filter_sections,
    group_by_section,
    ungroup_from_sections,
)
from i18ntrans_llms.translate.base import SectionTranslator, TranslationUnit, create_translator
from i18ntrans_llms.tree import FlatStrings, flatten, load_tree, unflatten, write_tree

logger = logging.getLogger(__name__)

# Type alias for progress callbacks
ProgressCallback = Callable[[str, float], None]

# LanguageResult.status values
STATUS_TRANSLATED = "translated"
STATUS_COMPLETE = "complete"
STATUS_DRY_RUN = "dry-run"


@dataclass
class PipelineConfig:
    """Configuration for one translation run."""
    input_path: Path
    source_lang: str
    target_langs: list[str]
    output_dir: Path
    model: str = DEFAULT_MODEL
    dry_run: bool = False
    missing_only: bool = False

    def __post_init__(self):
        self.input_path = Path(self.input_path)
        self.output_dir = Path(self.output_dir)

    def output_path(self, lang: str) -> Path:
        """Where the translated file for ``lang`` is written."""
        return self.output_dir / f"{lang}.json"

    def to_dict(self) -> dict:
        """Serialize config for logging/debugging."""
        return {
            "input_path": str(self.input_path),
            "source_lang": self.source_lang,
            "target_langs": list(self.target_langs),
            "output_dir": str(self.output_dir),
            "model": self.model,
            "dry_run": self.dry_run,
            "missing_only": self.missing_only,
        }


@dataclass
class LanguageResult:
    """Outcome for one target language.

    ``missing`` is only set in missing-only mode: the number of source keys
    the existing output lacked (all keys when there was no output yet).
    """
    language: str
    status: str
    output_path: Path
    sections_translated: list[str] = field(default_factory=list)
    keys_translated: int = 0
    missing: Optional[int] = None


@dataclass
class PipelineResult:
    """Result of running the pipeline."""
    config: PipelineConfig
    sections: dict[str, int] = field(default_factory=dict)  # section -> string count
    languages: list[LanguageResult] = field(default_factory=list)

    @property
    def string_count(self) -> int:
        return sum(self.sections.values())

    @property
    def section_count(self) -> int:
        return len(self.sections)

    @property
    def api_calls(self) -> int:
        return sum(len(r.sections_translated) for r in self.languages)


def merge_translations(
    source: FlatStrings,
    existing: FlatStrings,
    translated: FlatStrings,
) -> FlatStrings:
    """Combine an existing output with newly translated keys.

    Keys follow the source order; new translations win over existing
    values; keys only the existing output has are kept at the end.
    """
    result: FlatStrings = {}
    for key in source:
        if key in translated:
            result[key] = translated[key]
        elif key in existing:
            result[key] = existing[key]
    for mapping in (existing, translated):
        for key, value in mapping.items():
            result.setdefault(key, value)
    return result


class TranslationPipeline:
    """Main translation pipeline.

    Usage:
        config = PipelineConfig(
            input_path="locales/pt-BR.json",
            source_lang="pt-BR",
            target_langs=["es-AR", "en-US"],
            output_dir="locales",
        )
        translator = create_translator("openai", model=config.model)
        result = TranslationPipeline(config, translator).run()

    ``translator`` may be omitted for dry runs only.
    """

    def __init__(
        self,
        config: PipelineConfig,
        translator: SectionTranslator | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.config = config
        self.translator = translator
        self.progress_callback = progress_callback or (lambda msg, pct: None)

    def run(self) -> PipelineResult:
        """Run the pipeline for every target language."""
        config = self.config
        logger.info("Starting run: %s", config.to_dict())

        flat = flatten(load_tree(config.input_path))
        grouped = group_by_section(flat)
        result = PipelineResult(
            config=config,
            sections={name: len(strings) for name, strings in grouped.items()},
        )
        self.progress_callback(
            f"Loaded {config.input_path} ({result.string_count} strings)", 0.0
        )
        self.progress_callback(f"Grouped into {result.section_count} sections", 0.0)

        if config.dry_run:
            for lang in config.target_langs:
                result.languages.append(self._dry_run_language(lang, flat))
            self.progress_callback("Dry run complete", 1.0)
            return result

        if self.translator is None:
            raise ClientNotInitializedError(
                "No translator configured; one is required unless dry_run is set"
            )

        total = len(config.target_langs)
        for index, lang in enumerate(config.target_langs):
            self.progress_callback(f"Translating to {lang}...", index / max(total, 1))
            result.languages.append(self._translate_language(lang, flat, grouped, index))

        self.progress_callback("Complete!", 1.0)
        return result

    def _load_existing(self, lang: str) -> Optional[FlatStrings]:
        path = self.config.output_path(lang)
        if not path.is_file():
            return None
        existing = flatten(load_tree(path))
        logger.info("Loaded existing %s (%d keys)", path, len(existing))
        return existing

    def _dry_run_language(self, lang: str, flat: FlatStrings) -> LanguageResult:
        lang_result = LanguageResult(
            language=lang,
            status=STATUS_DRY_RUN,
            output_path=self.config.output_path(lang),
        )
        if self.config.missing_only:
            existing = self._load_existing(lang) or {}
            lang_result.missing = len(missing_for_target(flat, existing))
        return lang_result

    def _translate_language(
        self,
        lang: str,
        flat: FlatStrings,
        grouped: GroupedStrings,
        index: int,
    ) -> LanguageResult:
        output_path = self.config.output_path(lang)
        lang_result = LanguageResult(
            language=lang, status=STATUS_TRANSLATED, output_path=output_path,
        )

        existing: FlatStrings = {}
        pending = grouped
        if self.config.missing_only:
            existing = self._load_existing(lang) or {}
            missing = missing_for_target(flat, existing)
            lang_result.missing = len(missing)
            if not missing:
                logger.info("%s already complete, skipping", lang)
                lang_result.status = STATUS_COMPLETE
                return lang_result
            pending = filter_sections(grouped, missing)

        translated = self._translate_sections(lang, pending, index)
        lang_result.sections_translated = list(translated)
        lang_result.keys_translated = sum(len(s) for s in translated.values())

        merged = merge_translations(flat, existing, ungroup_from_sections(translated))
        write_tree(output_path, unflatten(merged))
        logger.info("Saved %s (%d keys)", output_path, len(merged))
        return lang_result

    def _translate_sections(
        self,
        lang: str,
        pending: GroupedStrings,
        index: int,
    ) -> GroupedStrings:
        """Translate sections one at a time, in order.

        Each request completes before the next one starts. The first error
        propagates, tagged with the section and language it came from.
        """
        total_langs = max(len(self.config.target_langs), 1)
        translated: GroupedStrings = {}
        for done, (section, strings) in enumerate(pending.items()):
            unit = TranslationUnit(
                section=section,
                strings=strings,
                source_lang=self.config.source_lang,
                target_lang=lang,
            )
            try:
                translated[section] = self.translator.translate_unit(unit)
            except TranslationError as e:
                if e.section is None:
                    e.section = section
                if e.language is None:
                    e.language = lang
                raise

            self.progress_callback(
                f"{section} ({len(strings)} strings)",
                (index + (done + 1) / len(pending)) / total_langs,
            )
        return translated


# ============================================================================
# Convenience Functions
# ============================================================================

def translate_file(
    input_path: Union[str, Path],
    source_lang: str,
    target_langs: list[str],
    output_dir: Union[str, Path],
    translator: SectionTranslator | None = None,
    model: str = DEFAULT_MODEL,
    missing_only: bool = False,
    dry_run: bool = False,
    progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Translate one locale file into several languages.

    This is the simplest API:

        translate_file("en.json", "en", ["fr", "de"], "locales", model="gpt-4o-mini")

    Without a ``translator``, an OpenAI translator for ``model`` is built
    (unless ``dry_run`` is set). For more control, use TranslationPipeline
    directly.
    """
    config = PipelineConfig(
        input_path=Path(input_path),
        source_lang=source_lang,
        target_langs=list(target_langs),
        output_dir=Path(output_dir),
        model=model,
        dry_run=dry_run,
        missing_only=missing_only,
    )
    if translator is None and not dry_run:
        translator = create_translator("openai", model=config.model)
    return TranslationPipeline(config, translator, progress).run()
