"""Shared fixtures: a Settings instance pointing every folder at tmp_path."""

import pytest

from app.utils.config import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    folders = {
        name: tmp_path / name
        for name in ("input", "output", "processed", "logs", "ingest")
    }
    for folder in folders.values():
        folder.mkdir()

    return Settings(
        input_folder=folders["input"],
        output_folder=folders["output"],
        processed_folder=folders["processed"],
        logging_folder=folders["logs"],
        ingest_folder=folders["ingest"],
        arming_delay=0.0,
        worker_poll_interval=0.05,
        alert_webhook_url=None,
        health_api_enabled=False,
    )


@pytest.fixture
def write_index(settings):
    """Write an index file into the input folder and return its path."""

    def _write(content: str):
        path = settings.input_folder / settings.input_filename
        path.write_text(content, encoding="utf-8")
        return path

    return _write
