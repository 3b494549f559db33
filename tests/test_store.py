"""
Tests for the local DocumentStore.
"""

import json

import pytest

from mindwtr_store.fileio import backup_path
from mindwtr_store.models import DecodeError
from mindwtr_store.models import StoreIOError
from tests.conftest import make_document
from tests.conftest import write_json


class TestDocumentStore:
    def test_save_then_get(self, document_store):
        """A saved document reads back equal."""
        document_store.save_data(make_document("a", "b"))
        assert document_store.get_data() == make_document("a", "b")

    def test_save_is_pretty_printed(self, document_store):
        """The stored document is indented JSON."""
        document_store.save_data(make_document("a"))
        text = document_store.data_path.read_text(encoding="utf-8")
        assert text.count("\n") > 3
        assert json.loads(text) == make_document("a")

    def test_save_keeps_previous_generation(self, document_store):
        """The previous document is kept as data.json.bak."""
        document_store.save_data(make_document("first"))
        document_store.save_data(make_document("second"))

        backup = json.loads(backup_path(document_store.data_path).read_text(encoding="utf-8"))
        assert backup == make_document("first")

    def test_corrupt_file_recovered_from_backup(self, document_store, sleep_recorder):
        """Four failed reads of data.json then one of the backup."""
        document_store.save_data(make_document("good"))
        document_store.save_data(make_document("newer"))
        document_store.data_path.write_text('{"tasks": [{"id": ', encoding="utf-8")

        assert document_store.get_data() == make_document("good")
        assert len(sleep_recorder.delays) == 3

    def test_truncated_with_nul_padding_still_reads(self, document_store):
        """Trailing NUL padding does not break the read."""
        content = json.dumps(make_document("x")) + "\x00" * 64
        document_store.data_path.parent.mkdir(parents=True)
        document_store.data_path.write_text(content, encoding="utf-8")
        assert document_store.get_data() == make_document("x")

    def test_missing_file(self, document_store):
        """Reading before any save is an I/O error."""
        with pytest.raises(StoreIOError):
            document_store.get_data()

    def test_corrupt_without_backup(self, document_store):
        """Corrupt data with no backup is a decode error."""
        document_store.data_path.parent.mkdir(parents=True)
        document_store.data_path.write_text("oops", encoding="utf-8")
        with pytest.raises(DecodeError):
            document_store.get_data()

    def test_unencodable_document_rejected_on_save(self, document_store):
        """A lone surrogate read from an escaped string cannot be saved back; the file is kept."""
        original = '{"tasks": [{"title": "\\ud800"}], "projects": [], "settings": {}}'
        document_store.data_path.parent.mkdir(parents=True)
        document_store.data_path.write_text(original, encoding="utf-8")

        document = document_store.get_data()
        assert document["tasks"][0]["title"] == "\ud800"

        with pytest.raises(DecodeError):
            document_store.save_data(document)
        assert document_store.data_path.read_text(encoding="utf-8") == original

    def test_paths(self, document_store, storage_paths):
        """Data and config paths follow the storage layout."""
        assert document_store.data_path == storage_paths.data_dir / "data.json"
        assert document_store.config_path == storage_paths.config_dir / "config.toml"


class TestAppendLogLine:
    def test_appends_raw_lines(self, document_store, storage_paths):
        """Lines are appended verbatim to logs/mindwtr.log."""
        first = document_store.append_log_line("one\n")
        second = document_store.append_log_line("two\n")

        assert first == second == storage_paths.data_dir / "logs" / "mindwtr.log"
        assert first.read_text(encoding="utf-8") == "one\ntwo\n"

    def test_does_not_touch_data_file(self, document_store):
        """Logging leaves the document alone."""
        write_json(document_store.data_path, make_document("keep"))
        document_store.append_log_line("x")
        assert document_store.get_data() == make_document("keep")
