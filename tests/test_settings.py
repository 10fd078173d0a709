"""Tests for configuration loading and the run logger."""

import os
import re
import threading

import pytest

from logcombine.core.scanner import MAX_LINE_BYTES
from logcombine.errors import ConfigError
from logcombine.utils.runlog import RunLogger
from logcombine.utils.settings import DEFAULT_BUCKET, DEFAULT_STORAGE_API, Settings, load_dotenv


def test_defaults():
    settings = Settings.from_env({})
    assert settings.bucket == DEFAULT_BUCKET
    assert settings.storage_api == DEFAULT_STORAGE_API
    assert settings.max_line_bytes == MAX_LINE_BYTES == 32 * 1024 * 1024
    assert settings.log_file is None


def test_overrides(tmp_path):
    settings = Settings.from_env({
        "LOGCOMBINE_BUCKET": "my-ci-logs",
        "LOGCOMBINE_STORAGE_API": "http://localhost:4443/",
        "LOGCOMBINE_MAX_LINE_BYTES": "1024",
        "LOGCOMBINE_LOG_FILE": str(tmp_path / "run.log"),
    })
    assert settings.bucket == "my-ci-logs"
    assert settings.storage_api == "http://localhost:4443"
    assert settings.max_line_bytes == 1024
    assert settings.log_file == tmp_path / "run.log"


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_invalid_max_line_bytes(value):
    with pytest.raises(ConfigError):
        Settings.from_env({"LOGCOMBINE_MAX_LINE_BYTES": value})


def test_load_dotenv_keeps_existing_values(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "\n"
        "LOGCOMBINE_BUCKET=from-file\n"
        "not a setting\n"
        "LOGCOMBINE_STORAGE_API=http://a=b\n"
    )
    monkeypatch.setenv("LOGCOMBINE_BUCKET", "from-shell")
    # Registered with monkeypatch so the value loaded below is removed afterwards
    monkeypatch.setenv("LOGCOMBINE_STORAGE_API", "unset")
    monkeypatch.delenv("LOGCOMBINE_STORAGE_API")

    load_dotenv([env_file, tmp_path / "missing.env"])

    assert os.environ["LOGCOMBINE_BUCKET"] == "from-shell"
    assert os.environ["LOGCOMBINE_STORAGE_API"] == "http://a=b"


def test_run_logger_disabled_writes_nothing(tmp_path):
    logger = RunLogger(None)
    logger.info("scan", "nothing")
    assert not logger.enabled
    assert list(tmp_path.iterdir()) == []


def test_run_logger_line_format(tmp_path):
    path = tmp_path / "logs" / "run.log"
    logger = RunLogger(path, run_id="abc123")
    logger.info("enumerate", "Found 3 sources")
    logger.warn("scan", "Cancelled a.log")
    logger.error("merge", "boom")

    lines = path.read_text().splitlines()
    pattern = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[run=abc123\] \[stage=(\w+)\] (\w+) (.*)$")
    parsed = [pattern.match(line).groups() for line in lines]
    assert parsed == [
        ("enumerate", "INFO", "Found 3 sources"),
        ("scan", "WARN", "Cancelled a.log"),
        ("merge", "ERROR", "boom"),
    ]


def test_run_logger_is_thread_safe(tmp_path):
    path = tmp_path / "run.log"
    logger = RunLogger(path)

    threads = [
        threading.Thread(target=lambda i=i: [logger.info("scan", f"worker {i} line {n}") for n in range(50)])
        for i in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = path.read_text().splitlines()
    assert len(lines) == 400
    assert all("[stage=scan] INFO worker" in line for line in lines)
