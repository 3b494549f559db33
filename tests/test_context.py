"""
Tests for AppContext wiring and the quick-add flag.
"""

import threading

from mindwtr_store.context import AppContext
from mindwtr_store.context import QuickAddFlag
from tests.conftest import make_document
from tests.conftest import write_json


class TestQuickAddFlag:
    def test_consume_without_request(self):
        """Nothing pending reads as False."""
        assert QuickAddFlag().consume() is False

    def test_request_consumed_once(self):
        """Repeated requests are consumed by a single call."""
        flag = QuickAddFlag()
        flag.request()
        flag.request()
        assert flag.consume() is True
        assert flag.consume() is False

    def test_concurrent_consumers_see_one_request(self):
        """Exactly one of many racing consumers observes the pending request."""
        flag = QuickAddFlag()
        flag.request()
        results = []
        start = threading.Barrier(8)

        def _consume():
            start.wait()
            results.append(flag.consume())

        threads = [threading.Thread(target=_consume) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1


class TestAppContext:
    def test_components_share_paths(self, storage_paths):
        """Stores are built over the same paths and config store."""
        context = AppContext(paths=storage_paths)
        assert context.documents.data_path == storage_paths.data_path
        assert context.sync.config_store is context.config

    def test_bootstrap_runs_once(self, storage_paths):
        """A second bootstrap on the same context does nothing."""
        write_json(storage_paths.legacy_data_path, make_document("legacy"))
        context = AppContext(paths=storage_paths)

        assert context.bootstrap() == storage_paths.legacy_data_path
        storage_paths.data_path.unlink()
        assert context.bootstrap() is None
        assert not storage_paths.data_path.exists()

    def test_bootstrap_then_read(self, storage_paths):
        """A fresh install reads back the empty document."""
        context = AppContext(paths=storage_paths)
        context.bootstrap()
        assert context.documents.get_data() == {"tasks": [], "projects": [], "settings": {}}

    def test_create_honours_directory_overrides(self, tmp_path, monkeypatch):
        """Explicit directories win while legacy ones follow the platform."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))

        context = AppContext.create(config_dir=tmp_path / "cfg", data_dir=tmp_path / "dat")

        assert context.paths.config_dir == tmp_path / "cfg"
        assert context.paths.data_dir == tmp_path / "dat"
        assert context.paths.legacy_config_dir.name == "tech.dongdongbh.mindwtr"
