"""Unit tests for config_loader module."""

from pathlib import Path

import pytest

import src.app.runtime.config.config_loader as config_loader_module
from src.app.runtime.config import (
    OperatorSettings,
    build_constants,
    load_config,
    substitute_env_vars,
)


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


class TestLoadConfig:
    """Loading settings from YAML files."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """No config.yaml in the working directory means default settings."""
        monkeypatch.setattr(config_loader_module, "CONFIG_PATH", tmp_path / "config.yaml")

        settings = load_config()

        assert settings == OperatorSettings()
        assert settings.requeue_after == 30.0

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_values_loaded(self, tmp_path):
        path = write_config(
            tmp_path,
            """
config:
  namespace: 3scale
  requeue_after: 60
  images:
    backend: registry.local/apisonator:dev
  logging:
    level: DEBUG
""",
        )

        settings = load_config(path)

        assert settings.namespace == "3scale"
        assert settings.requeue_after == 60.0
        assert settings.images.backend == "registry.local/apisonator:dev"
        assert settings.logging.level == "DEBUG"

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPERATOR_NAMESPACE", "from-env")
        path = write_config(
            tmp_path,
            """
config:
  namespace: ${OPERATOR_NAMESPACE}
  release: ${OPERATOR_RELEASE:-2.8}
""",
        )

        settings = load_config(path)

        assert settings.namespace == "from-env"
        assert settings.release == "2.8"

    def test_unquoted_release(self, tmp_path):
        """A release written as a bare number is kept as text."""
        settings = load_config(write_config(tmp_path, "config:\n  release: 2.8\n"))

        assert settings.release == "2.8"
        assert build_constants(settings).RELEASE == "2.8"

    def test_missing_config_key(self, tmp_path):
        path = write_config(tmp_path, "namespace: 3scale\n")

        with pytest.raises(ValueError, match="missing 'config' key"):
            load_config(path)

    def test_empty_file(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Error parsing YAML"):
            load_config(write_config(tmp_path, "config: [unclosed\n"))

    def test_validation_error(self, tmp_path):
        path = write_config(tmp_path, "config:\n  requeue_after: -5\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_unknown_log_level(self, tmp_path):
        path = write_config(tmp_path, "config:\n  logging:\n    level: LOUD\n")

        with pytest.raises(ValueError):
            load_config(path)

    def test_empty_config_section(self, tmp_path):
        settings = load_config(write_config(tmp_path, "config:\n"))

        assert settings == OperatorSettings()


class TestSubstituteEnvVars:
    """Placeholder expansion rules."""

    def test_required_present(self):
        assert substitute_env_vars("ns: ${NS}", {"NS": "prod"}) == "ns: prod"

    def test_default_used(self):
        assert substitute_env_vars("${NS:-default}", {}) == "default"

    def test_empty_value_wins_over_default(self):
        assert substitute_env_vars("${NS:-default}", {"NS": ""}) == ""

    def test_required_missing(self):
        with pytest.raises(ValueError, match="NS not set"):
            substitute_env_vars("${NS}", {})

    def test_custom_error_message(self):
        with pytest.raises(ValueError, match="set the watch namespace"):
            substitute_env_vars("${NS:?set the watch namespace}", {})

    def test_plain_dollar_untouched(self):
        assert substitute_env_vars("cost: $5", {}) == "cost: $5"


class TestBuildConstants:
    def test_defaults(self):
        constants = build_constants(OperatorSettings())

        assert constants.images.backend.startswith("quay.io/3scale/apisonator")
        assert constants.resource_profiles["backend-listener"]["limits"]["cpu"] == "1"

    def test_image_override(self):
        settings = OperatorSettings(images={"zync": "registry.local/zync:dev"})

        constants = build_constants(settings)

        assert constants.images.zync == "registry.local/zync:dev"
        assert constants.images.apicast.startswith("quay.io/3scale/apicast")

    def test_profile_override(self):
        settings = OperatorSettings(
            resource_profiles={"zync": {"limits": {"cpu": "2", "memory": "1Gi"}}}
        )

        constants = build_constants(settings)

        assert constants.resources_for("zync", True) == {
            "limits": {"cpu": "2", "memory": "1Gi"}
        }
        assert constants.resources_for("zync", False) == {}
        assert "requests" in constants.resources_for("zync-que", True)

    def test_unknown_profile_role(self):
        settings = OperatorSettings(resource_profiles={"mystery": {}})

        with pytest.raises(ValueError, match="mystery"):
            build_constants(settings)
