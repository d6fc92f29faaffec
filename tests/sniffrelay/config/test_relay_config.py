"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest

from sniffrelay.config.config import (
    CONFIG_ENV_VAR,
    LoggingConfig,
    RelayConfig,
    TransferDefaults,
    _expand_env_vars,
    load_config,
    load_yaml,
)
from sniffrelay.download.http_client import DEFAULT_CHUNK_SIZE, HttpClientConfig
from sniffrelay.errors.exceptions import ConfigError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "sniffrelay.yaml"
    path.write_text(text)
    return path


class TestLoadYaml:
    def test_missing_file(self, tmp_path):
        assert load_yaml(tmp_path / "missing.yaml") == {}

    def test_empty_file(self, tmp_path):
        assert load_yaml(write_config(tmp_path, "")) == {}

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_yaml(write_config(tmp_path, "http: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_yaml(write_config(tmp_path, "- a\n- b\n"))


class TestExpandEnvVars:
    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("RELAY_TOKEN", "abc")

        assert _expand_env_vars({"headers": {"Authorization": "Bearer ${RELAY_TOKEN}"}}) == {
            "headers": {"Authorization": "Bearer abc"}
        }

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("RELAY_CHUNK", raising=False)

        assert _expand_env_vars(["${RELAY_CHUNK:-1024}"]) == ["1024"]

    def test_empty_default(self, monkeypatch):
        monkeypatch.delenv("RELAY_UNSET", raising=False)

        assert _expand_env_vars("x${RELAY_UNSET:-}y") == "xy"

    def test_unset_without_default_left_as_is(self, monkeypatch):
        monkeypatch.delenv("RELAY_UNSET", raising=False)

        assert _expand_env_vars("${RELAY_UNSET}") == "${RELAY_UNSET}"

    def test_non_strings_untouched(self):
        assert _expand_env_vars({"a": 1, "b": True, "c": None}) == {"a": 1, "b": True, "c": None}


class TestLoadConfig:
    def test_defaults_when_missing(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")

        assert config == RelayConfig()
        assert config.http.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.logging == LoggingConfig()
        assert config.transfer == TransferDefaults()

    def test_full_file(self, tmp_path):
        path = write_config(
            tmp_path,
            """
http:
  timeout_total: 120
  chunk_size: 4096
  allow_redirects: false
  max_pending_events: 4
  headers:
    User-Agent: sniffrelay-test
logging:
  level: DEBUG
  json: true
  file: logs/relay.log
transfer:
  ignore_status: true
  allowed_extensions: [png, jpg]
""",
        )

        config = load_config(path)

        assert config.http.timeout_total == 120
        assert config.http.chunk_size == 4096
        assert config.http.allow_redirects is False
        assert config.http.max_pending_events == 4
        assert config.http.headers == {"User-Agent": "sniffrelay-test"}
        assert config.logging == LoggingConfig(level="DEBUG", json=True, file="logs/relay.log")
        assert config.transfer.ignore_status is True
        assert config.transfer.allowed_extensions == ["png", "jpg"]
        assert config.transfer.allowed_content_types is None

    def test_env_values_coerced(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RELAY_CHUNK_SIZE", "2048")
        monkeypatch.setenv("RELAY_VERIFY_SSL", "no")
        monkeypatch.setenv("RELAY_READ_TIMEOUT", "12.5")
        path = write_config(
            tmp_path,
            """
http:
  chunk_size: ${RELAY_CHUNK_SIZE}
  verify_ssl: ${RELAY_VERIFY_SSL}
  timeout_sock_read: ${RELAY_READ_TIMEOUT}
""",
        )

        config = load_config(path)

        assert config.http.chunk_size == 2048
        assert config.http.verify_ssl is False
        assert config.http.timeout_sock_read == 12.5

    def test_bad_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RELAY_CHUNK_SIZE", "large")
        path = write_config(tmp_path, "http:\n  chunk_size: ${RELAY_CHUNK_SIZE}\n")

        with pytest.raises(ConfigError, match="http.chunk_size"):
            load_config(path)

    def test_scalar_allowlist_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RELAY_EXTS", "png")
        path = write_config(tmp_path, "transfer:\n  allowed_extensions: ${RELAY_EXTS}\n")

        assert load_config(path).transfer.allowed_extensions == ["png"]

    def test_comma_separated_allowlist(self, tmp_path):
        path = write_config(
            tmp_path, "transfer:\n  allowed_content_types: image/png, text/csv\n"
        )

        assert load_config(path).transfer.allowed_content_types == ["image/png", "text/csv"]

    def test_empty_allowlist_variable_keeps_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RELAY_EXTS", raising=False)
        path = write_config(tmp_path, "transfer:\n  allowed_extensions: ${RELAY_EXTS:-}\n")

        assert load_config(path).transfer.allowed_extensions is None

    def test_allowlist_of_wrong_type(self, tmp_path):
        path = write_config(tmp_path, "transfer:\n  allowed_extensions: {png: true}\n")

        with pytest.raises(ConfigError, match="list of strings"):
            load_config(path)

    @pytest.mark.parametrize("key", ["chunk_size", "max_pending_events", "max_redirects"])
    def test_null_for_required_value(self, tmp_path, key):
        path = write_config(tmp_path, f"http:\n  {key}: null\n")

        with pytest.raises(ConfigError, match=f"http.{key} must not be null"):
            load_config(path)

    @pytest.mark.parametrize(
        "text",
        [
            "http:\n  chunk_size: [1, 2]\n",
            "http:\n  verify_ssl: 3\n",
            "http:\n  headers: plain\n",
            "logging:\n  level: 10\n",
        ],
    )
    def test_wrong_value_type(self, tmp_path, text):
        with pytest.raises(ConfigError, match="Invalid value"):
            load_config(write_config(tmp_path, text))

    def test_null_allowed_where_default_is_null(self, tmp_path):
        path = write_config(tmp_path, "logging:\n  file: null\n")

        assert load_config(path).logging.file is None

    def test_unknown_key(self, tmp_path):
        path = write_config(tmp_path, "http:\n  chunk_sise: 10\n")

        with pytest.raises(ConfigError, match="chunk_sise"):
            load_config(path)

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="'logging' must be a mapping"):
            load_config(write_config(tmp_path, "logging: DEBUG\n"))

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "http:\n  chunk_size: 512\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_config().http.chunk_size == 512

    def test_default_file_in_working_directory(self, tmp_path, monkeypatch):
        write_config(tmp_path, "logging:\n  level: WARNING\n")
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_config().logging.level == "WARNING"


class TestValidate:
    @pytest.mark.parametrize(
        "http,message",
        [
            (HttpClientConfig(timeout_total=0), "timeout_total"),
            (HttpClientConfig(timeout_sock_read=-1), "timeout_sock_read"),
            (HttpClientConfig(chunk_size=0), "chunk_size"),
            (HttpClientConfig(max_pending_events=0), "max_pending_events"),
            (HttpClientConfig(max_redirects=-1), "max_redirects"),
        ],
    )
    def test_invalid_http(self, http, message):
        with pytest.raises(ConfigError, match=message):
            RelayConfig(http=http).validate()

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError, match="log level"):
            RelayConfig(logging=LoggingConfig(level="CHATTY")).validate()

    def test_defaults_valid(self):
        RelayConfig().validate()
