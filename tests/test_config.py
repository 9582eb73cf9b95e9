import io
import unittest
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from config import logic
from config.loader import load_config, substitute_env_vars
from config.logic import (
    apply_environment,
    apply_model_override,
    deep_merge,
    load_and_merge_configs,
    load_environment,
)
from config.models import Config, InputOptions, ReviewOptions
from utils.errors import ConfigError


class TestLoader(unittest.TestCase):

    def test_env_substitution(self):
        with patch.dict("os.environ", {"GT_TEST_MODEL": "gemini-2.5-flash"}):
            data = load_config(io.StringIO("gemini:\n  model: ${GT_TEST_MODEL}\n"))
        self.assertEqual(data["gemini"]["model"], "gemini-2.5-flash")

    def test_env_substitution_default(self):
        with patch.dict("os.environ", {}, clear=True):
            self.assertEqual(substitute_env_vars("${GT_MISSING:-fallback}"), "fallback")

    def test_env_substitution_missing_raises(self):
        with patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(ConfigError):
                load_config(io.StringIO("gemini:\n  api_key: ${GT_MISSING}\n"))

    def test_invalid_yaml_raises(self):
        with self.assertRaises(ConfigError):
            load_config(io.StringIO("gemini: [unclosed\n"))

    def test_top_level_must_be_mapping(self):
        with self.assertRaises(ConfigError):
            load_config(io.StringIO("- one\n- two\n"))

    def test_empty_file(self):
        self.assertEqual(load_config(io.StringIO("")), {})


class TestDeepMerge(unittest.TestCase):

    def test_nested_dicts_merge_and_lists_replace(self):
        base = {"gemini": {"model": "a", "timeout_sec": 600}, "defaults": {"ignores": ["*.lock"]}}
        override = {"gemini": {"model": "b"}, "defaults": {"ignores": ["*.md"]}}

        merged = deep_merge(base, override)

        self.assertEqual(merged["gemini"], {"model": "b", "timeout_sec": 600})
        self.assertEqual(merged["defaults"]["ignores"], ["*.md"])


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logic, "USER_CONFIG_PATH", tmp_path / "no-user-config.yaml")
    return tmp_path


def test_default_config_loads(isolated_config):
    config = load_and_merge_configs()
    assert config.gemini.binary == "gemini"
    assert config.defaults.target_branch == "main"
    assert "package-lock.json" in config.defaults.ignores


def test_project_config_overrides_defaults(isolated_config):
    (isolated_config / ".gemini-tools.yaml").write_text(
        "gemini:\n  model: gemini-2.5-flash\ndefaults:\n  target_branch: develop\n", encoding="utf-8"
    )
    config = load_and_merge_configs()
    assert config.gemini.model == "gemini-2.5-flash"
    assert config.defaults.target_branch == "develop"
    assert config.gemini.timeout_sec == 600


def test_custom_config_path(isolated_config):
    custom = isolated_config / "custom.yaml"
    custom.write_text("shell:\n  timeout_sec: 30\n", encoding="utf-8")
    config = load_and_merge_configs(custom_config_path=str(custom))
    assert config.shell.timeout_sec == 30


def test_missing_custom_config_raises(isolated_config):
    with pytest.raises(ConfigError, match="not found"):
        load_and_merge_configs(custom_config_path=str(isolated_config / "missing.yaml"))


def test_invalid_config_values_raise(isolated_config):
    custom = isolated_config / "custom.yaml"
    custom.write_text("gemini:\n  timeout_sec: -5\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="validation failed"):
        load_and_merge_configs(custom_config_path=str(custom))


class TestEnvironment(unittest.TestCase):

    def test_valid_environment(self):
        env = load_environment(environ={"GEMINI_API_KEY": "secret", "GEMINI_MODEL": "gemini-2.5-flash"})
        self.assertEqual(env.GEMINI_API_KEY, "secret")
        self.assertEqual(env.GEMINI_MODEL, "gemini-2.5-flash")

    def test_missing_api_key(self):
        with self.assertRaises(ConfigError) as cm:
            load_environment(environ={})
        self.assertIn("GEMINI_API_KEY", str(cm.exception))

    def test_blank_api_key(self):
        with self.assertRaises(ConfigError):
            load_environment(environ={"GEMINI_API_KEY": "   "})

    def test_apply_environment(self):
        config = apply_environment(Config(), load_environment(environ={"GEMINI_API_KEY": "k", "GEMINI_MODEL": "m"}))
        self.assertEqual(config.gemini.api_key, "k")
        self.assertEqual(config.gemini.model, "m")

    def test_apply_environment_keeps_configured_model(self):
        config = apply_environment(Config(), load_environment(environ={"GEMINI_API_KEY": "k"}))
        self.assertEqual(config.gemini.model, "gemini-2.5-pro")

    def test_model_override_without_api_key(self):
        config = apply_model_override(Config(), environ={"GEMINI_MODEL": " gemini-2.5-flash "})
        self.assertEqual(config.gemini.model, "gemini-2.5-flash")
        self.assertIsNone(config.gemini.api_key)

    def test_model_override_keeps_configured_model(self):
        config = apply_model_override(Config(), environ={"GEMINI_MODEL": ""})
        self.assertEqual(config.gemini.model, "gemini-2.5-pro")


class TestOptions(unittest.TestCase):

    def test_review_options(self):
        options = ReviewOptions(source_branch="feature", target_branch="main", ignores=("*.md",))
        self.assertEqual(options.ignores, ("*.md",))
        self.assertIsNone(options.output)

    def test_same_branches_rejected(self):
        with self.assertRaises(ValidationError):
            ReviewOptions(source_branch="main", target_branch="main")

    def test_empty_branch_rejected(self):
        with self.assertRaises(ValidationError):
            ReviewOptions(source_branch="", target_branch="main")

    def test_options_are_immutable(self):
        options = InputOptions(input="src")
        with self.assertRaises(ValidationError):
            options.input = "other"

    def test_input_required(self):
        with self.assertRaises(ValidationError):
            InputOptions(input=None)
