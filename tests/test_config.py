"""
Test configuration presets, loaders and logging setup.
"""

import json
import logging

import pytest

from starrecord import Environment, StarRecordConfig, configure_logging, get_config, set_config


def test_environment_presets():
    assert StarRecordConfig.for_environment(Environment.DEVELOPMENT).logging.level == "DEBUG"
    assert StarRecordConfig.for_environment(Environment.PRODUCTION).logging.level == "INFO"

    testing = StarRecordConfig.for_environment(Environment.TESTING)
    assert testing.cache.default_ttl == 60
    assert testing.query.max_limit == 1000


def test_from_dict_overrides_sections():
    config = StarRecordConfig.from_dict({
        "environment": "production",
        "query": {"default_limit": 25, "unknown_option": True},
        "validation": {"salt": "pepper"},
    })

    assert config.environment == Environment.PRODUCTION
    assert config.query.default_limit == 25
    assert not hasattr(config.query, "unknown_option")
    assert config.validation.salt == "pepper"
    assert config.to_dict()["environment"] == "production"


def test_from_file(tmp_path):
    json_file = tmp_path / "starrecord.json"
    json_file.write_text(json.dumps({"cache": {"key_prefix": "json"}}))

    yaml_file = tmp_path / "starrecord.yaml"
    yaml_file.write_text("environment: testing\ncache:\n  key_prefix: yaml\n")

    assert StarRecordConfig.from_file(json_file).cache.key_prefix == "json"

    from_yaml = StarRecordConfig.from_file(yaml_file)
    assert from_yaml.environment == Environment.TESTING
    assert from_yaml.cache.key_prefix == "yaml"

    with pytest.raises(FileNotFoundError):
        StarRecordConfig.from_file(tmp_path / "missing.json")

    ini_file = tmp_path / "starrecord.ini"
    ini_file.write_text("[cache]")
    with pytest.raises(ValueError):
        StarRecordConfig.from_file(ini_file)


def test_from_environment(monkeypatch):
    monkeypatch.setenv("STARRECORD_ENV", "production")
    monkeypatch.setenv("STARRECORD_LOG_LEVEL", "error")
    monkeypatch.setenv("STARRECORD_PASSWORD_SALT", "pepper")
    monkeypatch.setenv("STARRECORD_CACHE_TTL", "30")

    config = StarRecordConfig.from_environment()
    assert config.environment == Environment.PRODUCTION
    assert config.logging.level == "ERROR"
    assert config.validation.salt == "pepper"
    assert config.cache.default_ttl == 30


def test_global_config(monkeypatch):
    monkeypatch.delenv("STARRECORD_ENV", raising=False)
    assert get_config().environment == Environment.DEVELOPMENT

    custom = StarRecordConfig.for_environment(Environment.TESTING)
    set_config(custom)
    assert get_config() is custom


def test_configure_logging_adds_one_handler():
    logger = logging.getLogger("starrecord")
    before = list(logger.handlers)

    try:
        configure_logging()
        configure_logging(StarRecordConfig.for_environment(Environment.PRODUCTION).logging)

        added = [handler for handler in logger.handlers if handler not in before]
        assert len(added) == 1
        assert logger.level == logging.INFO
    finally:
        for handler in logger.handlers[:]:
            if handler not in before:
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
