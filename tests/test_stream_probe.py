"""
Stream Probe Script Tests
=========================
"""

import argparse
import asyncio
import importlib.util
from pathlib import Path

import pytest

from aiduino.transport import SimulatedByteSource, SourceConnectionError

from conftest import FakeByteSource


SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "stream_probe.py"


@pytest.fixture
def script_module():
    spec = importlib.util.spec_from_file_location("stream_probe", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _args(**overrides) -> argparse.Namespace:
    values = {
        "config": None,
        "backend": "simulated",
        "port": None,
        "baud": None,
        "url": None,
        "corrupt_every": None,
        "duration": 1,
        "report_interval": 10,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestRunProbe:
    """The probe always ends with a final report."""

    def test_connect_failure_still_reports(self, script_module, monkeypatch):
        monkeypatch.setattr(
            script_module,
            "create_byte_source",
            lambda cfg: FakeByteSource(open_error=SourceConnectionError("port busy")),
        )

        metrics = asyncio.run(script_module.run_probe(_args()))

        assert metrics["connection_errors"] == 1
        assert metrics["samples_decoded"] == 0

    def test_streams_simulated_device(self, script_module, monkeypatch):
        monkeypatch.setattr(
            script_module,
            "create_byte_source",
            lambda cfg: SimulatedByteSource(interval_seconds=0, max_lines=5),
        )

        metrics = asyncio.run(script_module.run_probe(_args(duration=2)))

        assert metrics["samples_decoded"] == 5
