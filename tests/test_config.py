import sys
import os
import logging

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import LOG_LEVEL_ENV, SHARDS_ENV, EngineConfig


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config.num_shards == 1
        assert config.log_level == "WARNING"
        assert config.log_level_value == logging.WARNING

    def test_from_env(self):
        config = EngineConfig.from_env({SHARDS_ENV: " 4 ", LOG_LEVEL_ENV: "debug"})
        assert config.num_shards == 4
        assert config.log_level == "DEBUG"
        assert config.log_level_value == logging.DEBUG

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv(SHARDS_ENV, "2")
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert EngineConfig.from_env().num_shards == 2

    @pytest.mark.parametrize("environ", [
        {SHARDS_ENV: "many"},
        {SHARDS_ENV: "0"},
        {LOG_LEVEL_ENV: "chatty"},
    ])
    def test_invalid_values(self, environ):
        with pytest.raises(ValueError):
            EngineConfig.from_env(environ)
