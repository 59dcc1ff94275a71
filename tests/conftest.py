"""
Pytest config.

The repo uses a flat layout (``config.py``, ``analyst/``, ``dataset_ops/`` at
the root), so local imports rely on the repo root being on sys.path. We pin
that here so tests work whether or not the project is pip-installed. The
tests directory is added too so ``fakes`` (provider stand-ins) can be imported.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_on_syspath() -> None:
    here = Path(__file__).resolve().parent
    for path in (here.parent, here):
        path_str = str(path)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_on_syspath()


@pytest.fixture(autouse=True)
def event_bus():
    """Fresh EventBus per test so event assertions never see another test's events."""
    from analyst.event_bus import EventBus, set_event_bus

    bus = EventBus(session_id="test")
    set_event_bus(bus)
    return bus


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    """Keep logs and CLI state out of the real home directory."""
    import config

    monkeypatch.setenv("CHANNEL_ANALYST_DIR", str(tmp_path / "data"))
    config._reset_data_dir()
    yield
    config._reset_data_dir()


@pytest.fixture
def video_records():
    return [
        {
            "id": "a1",
            "title": "Asbestos in Old Houses",
            "releaseDate": "2024-03-10T12:00:00Z",
            "viewCount": 1500,
            "likeCount": 90,
            "commentCount": 12,
            "durationSeconds": 600,
        },
        {
            "id": "b2",
            "title": "Fixing a Leaky Faucet",
            "releaseDate": "2024-01-05T08:00:00Z",
            "viewCount": 4200,
            "likeCount": 80,
            "commentCount": 30,
            "durationSeconds": 240,
        },
        {
            "id": "c3",
            "title": "Deck Staining Basics",
            "releaseDate": "2024-02-20T18:30:00Z",
            "viewCount": 800,
            "likeCount": 150,
            "commentCount": 5,
            "durationSeconds": 1320,
        },
    ]


@pytest.fixture
def videos(video_records):
    from dataset_ops.dataset import Dataset

    return Dataset.videos(video_records, name="channel.json")
