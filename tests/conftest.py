"""
tests/conftest.py
─────────────────
Shared pytest fixtures for the i18n_translate test suite.
"""
import json

import pytest

from i18n_translate.config import TranslateOptions


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=4), encoding="utf-8")


def _read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def write_json():
    return _write_json


@pytest.fixture
def read_json():
    return _read_json


@pytest.fixture
def languages_dir(tmp_path):
    directory = tmp_path / "languages"
    directory.mkdir()
    return directory


@pytest.fixture
def make_options(languages_dir):
    def factory(**overrides):
        values = dict(
            languages_directory_path=str(languages_dir),
            base_language_code="en",
            target_language_codes=["pl", "ja"],
        )
        values.update(overrides)
        return TranslateOptions(**values)
    return factory


@pytest.fixture
def options(make_options):
    return make_options()


@pytest.fixture
def base_tree():
    return {
        "greeting": "Hello",
        "menu": {
            "open": "Open",
            "close": "Close",
        },
    }
