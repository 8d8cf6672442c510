"""
tests/test_translation_flow.py
──────────────────────────────
End-to-end tests for the translation flow against a temporary languages directory.
"""

import pytest
import requests

from i18n_translate.config import LanguageNames
from i18n_translate.engines import DummyEngine, TranslateEngine
from i18n_translate.errors import (
    ConfigurationError,
    EngineRequestError,
    EngineResultError,
    EngineTimeoutError,
    NamespaceValidationError,
)
from i18n_translate.retry import RetryGate, RetryPolicy, with_retry
from i18n_translate.translation_flow import translate


class FailingEngine(TranslateEngine):
    """Fails the test if the flow ever reaches the engine."""
    name = "Failing"

    def translate(self, translations, options):
        raise AssertionError(f"unexpected translate call: {translations}")

    def translate_missed(self, missing, options):
        raise AssertionError(f"unexpected translate_missed call: {missing}")


class RecordingEngine(DummyEngine):
    def __init__(self):
        super().__init__()
        self.translated = []
        self.missed = []

    def translate(self, translations, options):
        self.translated.append(translations)
        return super().translate(translations, options)

    def translate_missed(self, missing, options):
        self.missed.append(missing)
        return super().translate_missed(missing, options)


@pytest.fixture
def project(languages_dir, base_tree, write_json):
    write_json(languages_dir / "en" / "common.json", base_tree)
    return languages_dir


def cache_path(languages_dir):
    return languages_dir / ".translations-cache.json"


class TestFirstRun:
    def test_translates_everything(self, project, options, read_json):
        assert translate(DummyEngine(), options) is True

        assert read_json(project / "pl" / "common.json") == {
            "greeting": "pl-dummy__Hello",
            "menu": {"open": "pl-dummy__Open", "close": "pl-dummy__Close"},
        }
        assert read_json(project / "ja" / "common.json")["greeting"] == "ja-dummy__Hello"

    def test_cache_snapshots_base_and_targets(self, project, options, read_json):
        translate(DummyEngine(), options)

        cache = read_json(cache_path(project))
        assert cache["common.json"]["greeting"] == {
            "en": "Hello",
            "pl": "pl-dummy__Hello",
            "ja": "ja-dummy__Hello",
        }

    def test_second_run_detects_no_changes(self, project, options, read_json):
        translate(DummyEngine(), options)
        before = read_json(project / "pl" / "common.json")

        assert translate(FailingEngine(), options) is False
        assert read_json(project / "pl" / "common.json") == before


class TestIncrementalRuns:
    def test_changed_base_value_is_retranslated(self, project, options, base_tree, write_json, read_json):
        translate(DummyEngine(), options)
        polish = read_json(project / "pl" / "common.json")
        polish["menu"]["close"] = "Zamknij"
        write_json(project / "pl" / "common.json", polish)

        base_tree["greeting"] = "Hi"
        write_json(project / "en" / "common.json", base_tree)
        engine = RecordingEngine()

        assert translate(engine, options) is True

        assert engine.translated == [{"greeting": "Hi"}]
        assert engine.missed == []
        polish = read_json(project / "pl" / "common.json")
        assert polish["greeting"] == "pl-dummy__Hi"
        assert polish["menu"]["close"] == "Zamknij"
        assert read_json(cache_path(project))["common.json"]["greeting"]["en"] == "Hi"

    def test_new_base_key_is_translated(self, project, options, base_tree, write_json, read_json):
        translate(DummyEngine(), options)
        base_tree["menu"]["save"] = "Save"
        write_json(project / "en" / "common.json", base_tree)
        engine = RecordingEngine()

        translate(engine, options)

        assert engine.translated == [{"menu": {"save": "Save"}}]
        assert read_json(project / "ja" / "common.json")["menu"]["save"] == "ja-dummy__Save"

    def test_removed_base_key_is_pruned(self, project, options, base_tree, write_json, read_json):
        translate(DummyEngine(), options)
        del base_tree["menu"]["close"]
        base_tree["greeting"] = "Hi"
        write_json(project / "en" / "common.json", base_tree)

        translate(DummyEngine(), options)

        assert "close" not in read_json(cache_path(project))["common.json"]["menu"]
        assert "close" not in read_json(project / "pl" / "common.json")["menu"]

    def test_deleted_translation_is_restored_from_cache(self, project, options, write_json, read_json):
        translate(DummyEngine(), options)
        polish = read_json(project / "pl" / "common.json")
        del polish["greeting"]
        write_json(project / "pl" / "common.json", polish)

        assert translate(FailingEngine(), options) is True

        assert read_json(project / "pl" / "common.json")["greeting"] == "pl-dummy__Hello"

    def test_blank_translation_is_sent_as_missing(self, project, options, write_json, read_json):
        write_json(project / "pl" / "common.json", {"greeting": "Cześć", "menu": {"open": ""}})
        write_json(project / "ja" / "common.json", {
            "greeting": "こんにちは",
            "menu": {"open": "開く", "close": "閉じる"},
        })
        write_json(cache_path(project), {"common.json": {
            "greeting": {"en": "Hello"},
            "menu": {"open": {"en": "Open"}, "close": {"en": "Close"}},
        }})
        engine = RecordingEngine()

        translate(engine, options)

        assert engine.translated == []
        assert engine.missed[0].target_language_translations_keys == {"pl": {"menu": {"open": "", "close": ""}}}
        assert read_json(project / "pl" / "common.json")["menu"]["open"] == "pl-dummy__Open"
        assert not engine.missed[0].base_language_translations.get("greeting")


class TestEngineFailures:
    def test_invalid_engine_result_keeps_cache_untouched(self, project, options):
        class BrokenEngine(DummyEngine):
            def translate(self, translations, options):
                return {"pl": {}}

        with pytest.raises(EngineResultError):
            translate(BrokenEngine(), options)

        assert not cache_path(project).exists()
        assert not (project / "pl" / "common.json").exists()

    def test_request_error_saves_finished_namespaces(self, project, options, base_tree, write_json, read_json):
        write_json(project / "en" / "zz-later.json", {"title": "Later"})

        class FlakyEngine(DummyEngine):
            def translate(self, translations, options):
                if "title" in translations:
                    raise EngineRequestError("service unavailable", status=503)
                return super().translate(translations, options)

        with pytest.raises(EngineRequestError):
            translate(FlakyEngine(), options)

        assert read_json(project / "pl" / "common.json")["greeting"] == "pl-dummy__Hello"
        assert not (project / "pl" / "zz-later.json").exists()
        assert not cache_path(project).exists()

    def test_exhausted_timeouts_save_finished_namespaces(self, project, options, write_json, read_json):
        write_json(project / "en" / "zz-later.json", {"title": "Later"})
        attempts = []

        class SlowEngine(DummyEngine):
            def translate(self, translations, options):
                if "title" not in translations:
                    return super().translate(translations, options)

                def operation():
                    attempts.append(1)
                    raise requests.Timeout("read timed out")

                return with_retry(operation, "Slow translate", RetryGate(), RetryPolicy(max_retries=2, timeout_delay=0))

        with pytest.raises(EngineTimeoutError):
            translate(SlowEngine(), options)

        assert len(attempts) == 2
        assert read_json(project / "pl" / "common.json")["greeting"] == "pl-dummy__Hello"
        assert not (project / "pl" / "zz-later.json").exists()
        assert not cache_path(project).exists()

    def test_non_object_target_file_stops_before_translating(self, project, options, write_json):
        write_json(project / "pl" / "common.json", ["x"])

        with pytest.raises(NamespaceValidationError):
            translate(FailingEngine(), options)

        assert not cache_path(project).exists()


class TestOptionsHandling:
    def test_only_base_language_targets(self, project, make_options):
        assert translate(FailingEngine(), make_options(target_language_codes=["en"])) is False

    def test_invalid_options_fail_before_io(self, project, make_options):
        with pytest.raises(ConfigurationError):
            translate(FailingEngine(), make_options(target_language_codes=[]))
        assert not (project / "pl").exists()

    def test_custom_cache_name(self, project, make_options):
        translate(DummyEngine(), make_options(json_cache_name="my-cache"))
        assert (project / "my-cache.json").exists()

    def test_language_directory_names(self, project, make_options, write_json, read_json):
        write_json(project / "source-en" / "common.json", {"greeting": "Hello"})
        options = make_options(language_directory_names=LanguageNames(base="source-{language_}", targets="{language!}"))

        translate(DummyEngine(), options)

        assert read_json(project / "PL" / "common.json") == {"greeting": "pl-dummy__Hello"}


class TestCleanup:
    def test_removes_stray_entries(self, project, make_options, write_json):
        (project / "README.md").write_text("stray", encoding="utf-8")
        (project / "de").mkdir()
        write_json(project / "pl" / "obsolete.json", {"old": "Stary"})

        translate(DummyEngine(), make_options(cleanup=True))

        assert not (project / "README.md").exists()
        assert not (project / "de").exists()
        assert not (project / "pl" / "obsolete.json").exists()
        assert (project / "pl" / "common.json").exists()
        assert (project / "en" / "common.json").exists()

    def test_cleanup_disabled_keeps_entries(self, project, options):
        (project / "README.md").write_text("stray", encoding="utf-8")
        translate(DummyEngine(), options)
        assert (project / "README.md").exists()
