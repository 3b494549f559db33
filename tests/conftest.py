"""
Shared pytest fixtures: an isolated storage layout under tmp_path.
"""

import json

import pytest

from mindwtr_store.config_store import ConfigStore
from mindwtr_store.paths import StoragePaths
from mindwtr_store.store import DocumentStore
from mindwtr_store.sync import SyncReconciler


def make_document(*titles: str) -> dict:
    """Return a minimal document holding one task per title."""
    return {
        "tasks": [{"id": f"t{i}", "title": title} for i, title in enumerate(titles, 1)],
        "projects": [],
        "settings": {},
    }


def write_json(path, value) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value), encoding="utf-8")


class SleepRecorder:
    """Stand-in for time.sleep that records the requested delays."""

    def __init__(self, on_sleep=None):
        self.delays: list[float] = []
        self.on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.delays))


@pytest.fixture
def storage_paths(tmp_path):
    return StoragePaths(
        config_dir=tmp_path / "config" / "mindwtr",
        data_dir=tmp_path / "data" / "mindwtr",
        legacy_config_dir=tmp_path / "config" / "tech.dongdongbh.mindwtr",
        legacy_data_dir=tmp_path / "data" / "tech.dongdongbh.mindwtr",
        home=tmp_path / "home",
    )


@pytest.fixture
def config_store(storage_paths):
    return ConfigStore(storage_paths)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def document_store(storage_paths, sleep_recorder):
    return DocumentStore(storage_paths, sleep=sleep_recorder)


@pytest.fixture
def reconciler(config_store, sleep_recorder):
    return SyncReconciler(config_store, sleep=sleep_recorder)


@pytest.fixture
def sync_dir(tmp_path, config_store):
    path = tmp_path / "Sync"
    config_store.set_sync_path(str(path))
    return path
