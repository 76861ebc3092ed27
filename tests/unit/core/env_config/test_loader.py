"""Тесты загрузки конфигурации из окружения."""

import os

import pytest
from pydantic import ValidationError

from request_pipeline import InMemoryKeyValueCache
from request_pipeline.core.env_config import (
    PipelineOptions,
    PipelineSettings,
    build_pipeline_config,
    load_from_env,
    print_config_summary,
)
from request_pipeline.core.logging import LogFormat, LogLevel


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("GRAPHQL_PIPELINE_"):
            monkeypatch.delenv(key, raising=False)


class TestPipelineSettings:

    def test_defaults(self, tmp_path):
        settings = PipelineSettings(_env_file=str(tmp_path / "missing.env"))

        assert settings.debug is False
        assert settings.persisted_queries_enabled is False
        assert settings.document_cache_enabled is True
        assert settings.log_enabled is False

    def test_reads_prefixed_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GRAPHQL_PIPELINE_DEBUG", "true")
        monkeypatch.setenv("GRAPHQL_PIPELINE_PERSISTED_QUERIES_ENABLED", "1")
        monkeypatch.setenv("GRAPHQL_PIPELINE_PERSISTED_QUERY_TTL", "900")

        settings = PipelineSettings(_env_file=str(tmp_path / "missing.env"))

        assert settings.debug is True
        assert settings.persisted_queries_enabled is True
        assert settings.persisted_query_ttl == 900

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env.staging"
        env_file.write_text(
            "GRAPHQL_PIPELINE_LOG_ENABLED=true\nGRAPHQL_PIPELINE_LOG_FORMAT=json\n",
            encoding="utf-8",
        )

        settings = PipelineSettings(_env_file=str(env_file))

        assert settings.log_enabled is True
        assert settings.log_format == "json"

    def test_env_overrides_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GRAPHQL_PIPELINE_DEBUG=false\n", encoding="utf-8")
        monkeypatch.setenv("GRAPHQL_PIPELINE_DEBUG", "true")

        assert PipelineSettings(_env_file=str(env_file)).debug is True

    def test_invalid_value(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GRAPHQL_PIPELINE_PERSISTED_QUERY_TTL", "-1")

        with pytest.raises(ValidationError):
            PipelineSettings(_env_file=str(tmp_path / "missing.env"))

    def test_to_options(self, tmp_path):
        settings = PipelineSettings(
            _env_file=str(tmp_path / "missing.env"),
            parse_max_tokens=5000,
            log_level="DEBUG",
        )

        options = settings.to_options()

        assert options.parse.max_tokens == 5000
        assert options.logging.level == "DEBUG"
        assert options.document_cache.enabled is True


class TestBuildPipelineConfig:

    def test_defaults(self):
        config = build_pipeline_config(PipelineOptions())

        assert config.persisted_queries is None
        assert isinstance(config.document_store, InMemoryKeyValueCache)
        assert dict(config.parse_options) == {"no_location": False}
        assert config.logging is None

    def test_enabled_features_use_given_stores(self):
        apq_store = InMemoryKeyValueCache()
        documents = InMemoryKeyValueCache()
        options = PipelineOptions.model_validate({"persisted_queries": {"enabled": True, "ttl": 60}})

        config = build_pipeline_config(options, persisted_query_cache=apq_store, document_store=documents)

        assert config.persisted_queries.cache is apq_store
        assert config.persisted_queries.ttl == 60
        assert config.document_store is documents

    def test_disabled_document_cache_ignores_store(self):
        options = PipelineOptions.model_validate({"document_cache": {"enabled": False}})

        config = build_pipeline_config(options, document_store=InMemoryKeyValueCache())

        assert config.document_store is None

    def test_logging_section(self):
        options = PipelineOptions.model_validate({
            "logging": {"enabled": True, "level": "WARNING", "format": "json", "log_variables": True,
                        "slow_request_ms": 750},
        })

        config = build_pipeline_config(options)

        assert config.logging.level == LogLevel.WARNING
        assert config.logging.format == LogFormat.JSON
        assert config.logging.log_variables is True
        assert config.logging.slow_request_ms == 750
        assert config.logging.log_query is False

    def test_overrides(self):
        def format_error(formatted, error):
            return formatted

        config = build_pipeline_config(PipelineOptions(), format_error=format_error, debug=True)

        assert config.format_error is format_error
        assert config.debug is True

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError):
            PipelineOptions.model_validate({"unknown": 1})


class TestLoadFromEnv:

    def test_load(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GRAPHQL_PIPELINE_PERSISTED_QUERIES_ENABLED", "true")
        monkeypatch.setenv("GRAPHQL_PIPELINE_PROTOCOL_ERROR_STATUS_CODE", "200")
        store = InMemoryKeyValueCache()

        config = load_from_env(env_file=str(tmp_path / "missing.env"), persisted_query_cache=store)

        assert config.persisted_queries.cache is store
        assert config.protocol_error_status_code == 200

    def test_profile_selects_env_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env.production").write_text("GRAPHQL_PIPELINE_DEBUG=true\n", encoding="utf-8")

        config = load_from_env(profile="production")

        assert config.debug is True

    def test_print_summary(self, capsys):
        config = build_pipeline_config(PipelineOptions.model_validate({"logging": {"enabled": True}}))

        print_config_summary(config)

        output = capsys.readouterr().out
        assert "PipelineConfig:" in output
        assert "document_store: True" in output
        assert "logging: level=INFO, format=text" in output
