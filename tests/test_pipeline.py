"""
Tests for the translation pipeline.

Tests cover:
- Full runs over several languages
- Dry runs (no calls, no files)
- Fail-fast behaviour on invalid replies
- Missing-only mode: skipping, partial translation, merging
"""

import json

import pytest

from i18ntrans_llms.errors import (
    ClientNotInitializedError,
    InputNotFoundError,
    InvalidInputShapeError,
    KeySetMismatchError,
)
from i18ntrans_llms.pipeline import (
    PipelineConfig,
    TranslationPipeline,
    merge_translations,
    translate_file,
)
from i18ntrans_llms.tree import dump_tree

from fakes import ScriptedTranslator


SOURCE = {
    "auth": {"login": {"title": "Entrar", "button": "Login"}},
    "nav": {"home": "Início", "greeting": "Olá {{name}}"},
    "title": "Aplicativo",
}


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "pt-BR.json"
    path.write_text(json.dumps(SOURCE, ensure_ascii=False), encoding="utf-8")
    return path


def make_config(source_file, langs=("es-AR",), **kwargs):
    return PipelineConfig(
        input_path=source_file,
        source_lang="pt-BR",
        target_langs=list(langs),
        output_dir=source_file.parent / "out",
        **kwargs,
    )


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestFullRun:
    """Tests for complete translation runs."""

    def test_translates_every_section(self, source_file):
        """Every section is sent once and the output mirrors the source tree."""
        translator = ScriptedTranslator()
        config = make_config(source_file)
        result = TranslationPipeline(config, translator).run()

        assert [call[1] for call in translator.calls] == ["auth", "nav", "title"]
        assert result.string_count == 5
        assert result.section_count == 3
        assert result.api_calls == 3

        output = read_json(config.output_path("es-AR"))
        assert output == {
            "auth": {"login": {"title": "[es-AR] Entrar", "button": "[es-AR] Login"}},
            "nav": {"home": "[es-AR] Início", "greeting": "[es-AR] Olá {{name}}"},
            "title": "[es-AR] Aplicativo",
        }

    def test_output_layout(self, source_file):
        """Output uses two-space indentation, source order and a final newline."""
        config = make_config(source_file)
        TranslationPipeline(config, ScriptedTranslator()).run()

        text = config.output_path("es-AR").read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert text.startswith('{\n  "auth": {\n    "login": {')
        assert list(json.loads(text)) == ["auth", "nav", "title"]

    def test_languages_in_order(self, source_file):
        """Languages are processed one after another in the given order."""
        translator = ScriptedTranslator()
        config = make_config(source_file, langs=["es-AR", "en-US"])
        result = TranslationPipeline(config, translator).run()

        langs = [call[0] for call in translator.calls]
        assert langs == ["es-AR"] * 3 + ["en-US"] * 3
        assert [r.language for r in result.languages] == ["es-AR", "en-US"]
        assert config.output_path("en-US").exists()

    def test_top_level_leaf_section(self, source_file):
        """A top-level string is sent as its own section with remainder ''."""
        translator = ScriptedTranslator()
        TranslationPipeline(make_config(source_file), translator).run()
        assert ("es-AR", "title", {"": "Aplicativo"}) in translator.calls

    def test_progress_callback(self, source_file):
        """Progress reports counts, each section and completion."""
        messages = []
        config = make_config(source_file)
        TranslationPipeline(
            config, ScriptedTranslator(), lambda msg, pct: messages.append((msg, pct))
        ).run()

        assert messages[0][0].endswith("(5 strings)")
        assert messages[1][0] == "Grouped into 3 sections"
        assert ("auth (2 strings)", pytest.approx(1 / 3)) in messages
        assert messages[-1] == ("Complete!", 1.0)

    def test_requires_translator(self, source_file):
        """A real run without a translator is refused."""
        with pytest.raises(ClientNotInitializedError):
            TranslationPipeline(make_config(source_file)).run()

    def test_input_not_found(self, tmp_path):
        """A missing input file aborts the run."""
        config = make_config(tmp_path / "missing.json")
        with pytest.raises(InputNotFoundError):
            TranslationPipeline(config, ScriptedTranslator()).run()

    def test_input_not_object(self, tmp_path):
        """A non-object input file aborts the run."""
        path = tmp_path / "pt-BR.json"
        path.write_text('"just a string"', encoding="utf-8")
        with pytest.raises(InvalidInputShapeError):
            TranslationPipeline(make_config(path), ScriptedTranslator()).run()

    def test_translate_file_helper(self, source_file):
        """translate_file runs the pipeline with the given translator."""
        result = translate_file(
            source_file, "pt-BR", ["fr"], source_file.parent / "out",
            translator=ScriptedTranslator(),
        )
        assert result.languages[0].status == "translated"
        assert result.languages[0].keys_translated == 5

    def test_translate_file_builds_translator_for_model(self, source_file, monkeypatch):
        """Without a translator, translate_file builds one for the requested model."""
        built = []

        def fake_create(backend, **kwargs):
            built.append((backend, kwargs))
            return ScriptedTranslator()

        monkeypatch.setattr("i18ntrans_llms.pipeline.create_translator", fake_create)
        result = translate_file(
            source_file, "pt-BR", ["fr"], source_file.parent / "out",
            model="gpt-4o-mini",
        )

        assert built == [("openai", {"model": "gpt-4o-mini"})]
        assert result.config.model == "gpt-4o-mini"
        assert result.languages[0].keys_translated == 5

    def test_translate_file_dry_run_builds_nothing(self, source_file, monkeypatch):
        """A dry run through translate_file needs no credentials."""
        def no_create(backend, **kwargs):
            raise AssertionError("dry run must not build a translator")

        monkeypatch.setattr("i18ntrans_llms.pipeline.create_translator", no_create)
        result = translate_file(
            source_file, "pt-BR", ["fr"], source_file.parent / "out", dry_run=True,
        )
        assert result.languages[0].status == "dry-run"

    def test_empty_object_in_input(self, tmp_path):
        """An empty nested object stops the run before any call."""
        path = tmp_path / "pt-BR.json"
        path.write_text('{"a": {}, "b": "x"}', encoding="utf-8")
        translator = ScriptedTranslator()

        with pytest.raises(InvalidInputShapeError, match="Empty object"):
            TranslationPipeline(make_config(path), translator).run()
        assert translator.calls == []


class TestDryRun:
    """Tests for dry runs."""

    def test_no_calls_no_files(self, source_file):
        """A dry run makes no calls and writes nothing."""
        translator = ScriptedTranslator()
        config = make_config(source_file, dry_run=True)
        result = TranslationPipeline(config, translator).run()

        assert translator.calls == []
        assert not config.output_dir.exists()
        assert result.sections == {"auth": 2, "nav": 2, "title": 1}
        assert result.languages[0].status == "dry-run"
        assert result.languages[0].missing is None

    def test_works_without_translator(self, source_file):
        """A dry run needs no translator."""
        result = TranslationPipeline(make_config(source_file, dry_run=True)).run()
        assert result.string_count == 5

    def test_missing_counts(self, source_file):
        """In missing-only dry runs, per-language missing counts are reported."""
        config = make_config(source_file, langs=["es-AR", "en-US"], dry_run=True, missing_only=True)
        config.output_dir.mkdir()
        config.output_path("es-AR").write_text(
            json.dumps({"auth": {"login": {"title": "Entrar"}}}), encoding="utf-8"
        )

        result = TranslationPipeline(config).run()

        assert [r.missing for r in result.languages] == [4, 5]
        assert read_json(config.output_path("es-AR")) == {"auth": {"login": {"title": "Entrar"}}}


class TestFailFast:
    """Tests for aborting on the first failed unit."""

    def _swap_key(self, unit):
        reply = {key: value for key, value in unit.strings.items()}
        reply["login.heading"] = reply.pop("login.title")
        return reply

    def test_key_mismatch_aborts_run(self, source_file):
        """The first invalid reply stops the whole run."""
        translator = ScriptedTranslator(overrides={"auth": self._swap_key})
        config = make_config(source_file, langs=["es-AR", "en-US"])

        with pytest.raises(KeySetMismatchError) as exc_info:
            TranslationPipeline(config, translator).run()

        assert exc_info.value.section == "auth"
        assert exc_info.value.language == "es-AR"
        assert "section 'auth'" in str(exc_info.value)
        # First section failed: nothing else was requested or written
        assert len(translator.calls) == 1
        assert not config.output_path("es-AR").exists()
        assert not config.output_path("en-US").exists()

    def test_existing_file_untouched_on_failure(self, source_file):
        """A failed language leaves its previous file as it was."""
        config = make_config(source_file)
        config.output_dir.mkdir()
        before = '{"old": "content"}\n'
        config.output_path("es-AR").write_text(before, encoding="utf-8")

        translator = ScriptedTranslator(overrides={"nav": self._swap_key_nav})
        with pytest.raises(KeySetMismatchError):
            TranslationPipeline(config, translator).run()

        assert config.output_path("es-AR").read_text(encoding="utf-8") == before

    def _swap_key_nav(self, unit):
        return {"wrong": "x"}

    def test_earlier_languages_kept(self, source_file):
        """Languages finished before the failure keep their files."""
        def fail_for_second_language(unit):
            if unit.target_lang == "en-US":
                return {}
            return {key: value for key, value in unit.strings.items()}

        translator = ScriptedTranslator(overrides={"nav": fail_for_second_language})
        config = make_config(source_file, langs=["es-AR", "en-US"])

        with pytest.raises(KeySetMismatchError):
            TranslationPipeline(config, translator).run()

        assert config.output_path("es-AR").exists()
        assert not config.output_path("en-US").exists()


class TestMissingOnly:
    """Tests for missing-only (incremental) mode."""

    def _write_existing(self, config, lang, tree):
        config.output_dir.mkdir(exist_ok=True)
        config.output_path(lang).write_text(dump_tree(tree), encoding="utf-8")

    def test_complete_language_skipped(self, source_file):
        """A language with nothing missing is skipped and its file untouched."""
        config = make_config(source_file, missing_only=True)
        complete = {
            "auth": {"login": {"title": "Sign in", "button": "Login"}},
            "nav": {"home": "Home", "greeting": "Hi {{name}}"},
            "title": "App",
        }
        self._write_existing(config, "es-AR", complete)
        before = config.output_path("es-AR").read_bytes()

        translator = ScriptedTranslator()
        result = TranslationPipeline(config, translator).run()

        assert translator.calls == []
        assert result.languages[0].status == "complete"
        assert result.languages[0].missing == 0
        assert config.output_path("es-AR").read_bytes() == before

    def test_one_missing_key(self, source_file):
        """Only the missing key is sent and merged into the existing file."""
        config = make_config(source_file, missing_only=True)
        existing = {
            "auth": {"login": {"title": "Sign in", "button": "Login"}},
            "nav": {"home": "Home"},
            "title": "App",
        }
        self._write_existing(config, "es-AR", existing)

        translator = ScriptedTranslator()
        result = TranslationPipeline(config, translator).run()

        assert translator.calls == [("es-AR", "nav", {"greeting": "Olá {{name}}"})]
        assert result.languages[0].keys_translated == 1
        assert read_json(config.output_path("es-AR")) == {
            "auth": {"login": {"title": "Sign in", "button": "Login"}},
            "nav": {"home": "Home", "greeting": "[es-AR] Olá {{name}}"},
            "title": "App",
        }

    def test_no_existing_file_translates_everything(self, source_file):
        """Without an existing file, every key is missing."""
        translator = ScriptedTranslator()
        config = make_config(source_file, missing_only=True)
        result = TranslationPipeline(config, translator).run()

        assert len(translator.calls) == 3
        assert result.languages[0].missing == 5

    def test_merge_keeps_source_order(self, source_file):
        """Merged output follows the source key order."""
        config = make_config(source_file, missing_only=True)
        self._write_existing(config, "es-AR", {"title": "App", "nav": {"home": "Home"}})

        TranslationPipeline(config, ScriptedTranslator()).run()

        output = read_json(config.output_path("es-AR"))
        assert list(output) == ["auth", "nav", "title"]
        assert list(output["nav"]) == ["home", "greeting"]
        assert output["title"] == "App"

    def test_extra_existing_keys_preserved(self, source_file):
        """Keys only the existing file has are kept at the end."""
        config = make_config(source_file, missing_only=True)
        self._write_existing(config, "es-AR", {"legacy": {"banner": "Old"}})

        TranslationPipeline(config, ScriptedTranslator()).run()

        output = read_json(config.output_path("es-AR"))
        assert output["legacy"] == {"banner": "Old"}
        assert list(output)[-1] == "legacy"


class TestMergeTranslations:
    """Tests for merge_translations()."""

    def test_new_values_win(self):
        """Fresh translations replace existing values."""
        merged = merge_translations({"a": "1", "b": "2"}, {"a": "old"}, {"a": "new", "b": "B"})
        assert merged == {"a": "new", "b": "B"}

    def test_existing_kept(self):
        """Existing values fill keys that were not retranslated."""
        merged = merge_translations({"a": "1", "b": "2"}, {"a": "A"}, {"b": "B"})
        assert list(merged.items()) == [("a", "A"), ("b", "B")]
