"""
Configuration Tests
===================
"""

import pytest
from pydantic import ValidationError

from aiduino.config import Settings, load_config


class TestSettings:
    """Defaults, YAML loading and environment overrides."""

    def test_defaults(self):
        cfg = Settings()
        assert cfg.buffer.capacity == 60
        assert cfg.summary.min_samples == 10
        assert cfg.summary.interval_seconds == 60.0
        assert cfg.source.serial.baud_rate == 9600
        assert cfg.source.backend == "simulated"

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"buffer": {"capacity": 0}})

    def test_yaml_file(self, tmp_path, monkeypatch):
        for name in ("AIDUINO_BUFFER_CAPACITY", "AIDUINO_SOURCE_BACKEND", "AIDUINO_SERIAL_PORT"):
            monkeypatch.delenv(name, raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "source:\n"
            "  backend: serial\n"
            "  serial:\n"
            "    port: /dev/ttyUSB3\n"
            "buffer:\n"
            "  capacity: 30\n"
        )

        cfg = load_config(str(path))
        assert cfg.source.backend == "serial"
        assert cfg.source.serial.port == "/dev/ttyUSB3"
        assert cfg.buffer.capacity == 30

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("buffer:\n  capacity: 30\n")
        monkeypatch.setenv("AIDUINO_BUFFER_CAPACITY", "90")
        monkeypatch.setenv("AIDUINO_BAUD_RATE", "115200")
        monkeypatch.setenv("AIDUINO_SUMMARY_URL", "http://localhost:9000/api/summary")
        monkeypatch.setenv("AIDUINO_LOG_LEVEL", "DEBUG")

        cfg = load_config(str(path))
        assert cfg.buffer.capacity == 90
        assert cfg.source.serial.baud_rate == 115200
        assert cfg.summary.endpoint_url == "http://localhost:9000/api/summary"
        assert cfg.logging.level == "DEBUG"
