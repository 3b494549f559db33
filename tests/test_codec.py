"""
Unit tests for the text codecs: relaxed JSON decoding and the flat TOML dialect.
"""

import pytest

from mindwtr_store.codec import encode_pretty
from mindwtr_store.codec import parse_flat_toml
from mindwtr_store.codec import parse_relaxed
from mindwtr_store.codec import parse_toml_string
from mindwtr_store.codec import sanitize
from mindwtr_store.codec import serialize_flat_toml
from mindwtr_store.codec import serialize_toml_string
from mindwtr_store.models import DecodeError
from tests.conftest import make_document


class TestSanitize:
    def test_strips_leading_bom(self):
        """A UTF-8 byte-order mark in front of the payload is removed."""
        assert sanitize('\ufeff{"a": 1}') == '{"a": 1}'

    def test_strips_trailing_nul_padding(self):
        """NUL bytes left by a truncated write are removed."""
        assert sanitize('{"a": 1}\x00\x00\x00') == '{"a": 1}'

    def test_strips_whitespace_around_nul_padding(self):
        """Trailing whitespace before and after the NUL run is trimmed."""
        assert sanitize('{"a": 1}\n\x00\x00 \n') == '{"a": 1}'

    def test_strips_interleaved_nul_and_whitespace(self):
        """NULs separated by spaces are all removed, not just the last run."""
        assert sanitize('{"a":1}\x00 \x00') == '{"a":1}'
        assert sanitize('{"a":1}\x00\t\x00\r\n\x00') == '{"a":1}'

    def test_leaves_inner_content_untouched(self):
        """Leading whitespace and interior characters are not modified."""
        text = '  {"note": "tab\\there \\u0000 kept"}'
        assert sanitize(text) == text


class TestParseRelaxed:
    def test_empty_text_is_empty_object(self):
        """Empty or artifact-only content decodes to {}."""
        assert parse_relaxed("") == {}
        assert parse_relaxed("\ufeff  \x00\x00") == {}

    def test_strict_document(self):
        """Well-formed JSON takes the fast path."""
        assert parse_relaxed('{"tasks": [1, 2]}') == {"tasks": [1, 2]}

    def test_trailing_garbage_is_ignored(self):
        """The first complete object wins; leftover bytes of the old file are dropped."""
        raw = '{"tasks": [], "projects": []}\n  "settings": {"old": true}}\n'
        assert parse_relaxed(raw) == {"tasks": [], "projects": []}

    def test_leading_noise_before_object(self):
        """Decoding restarts at the first brace when the strict parse fails."""
        assert parse_relaxed('garbage {"a": 1} tail') == {"a": 1}

    def test_array_before_object(self):
        """Whichever of [ or { appears first starts the relaxed parse."""
        assert parse_relaxed("xx [1, 2] {") == [1, 2]

    def test_bom_and_nul_combined_with_trailing_bytes(self):
        """Sanitizing happens before both parse passes."""
        assert parse_relaxed('\ufeff{"a": 1}}}\x00\x00') == {"a": 1}

    def test_undecodable_raises_decode_error(self):
        """Neither pass succeeding surfaces DecodeError."""
        with pytest.raises(DecodeError):
            parse_relaxed('{"tasks": [')

    def test_scalar_with_trailing_text(self):
        """A leading scalar value is decoded and the text after it dropped."""
        assert parse_relaxed("  42 trailing") == 42
        assert parse_relaxed('"done" and more') == "done"

    def test_no_brackets_raises_decode_error(self):
        """Text with no JSON value at all is a DecodeError."""
        with pytest.raises(DecodeError):
            parse_relaxed("not json at all")


class TestEncodePretty:
    def test_round_trip(self):
        """encode_pretty output decodes back to an equal document."""
        document = make_document("Buy milk", "Café ☕")
        document["settings"] = {"theme": "dark", "nested": {"n": 1.5, "flag": None}}
        assert parse_relaxed(encode_pretty(document)) == document

    def test_is_multiline_and_keeps_unicode(self):
        """Output is indented and non-ASCII is not escaped."""
        text = encode_pretty({"title": "Café"})
        assert "\n" in text
        assert "Café" in text


class TestTomlString:
    def test_basic_string_escapes(self):
        """Backslash and quote escapes are undone inside basic strings."""
        assert parse_toml_string(r'"C:\\Users\\me \"quoted\""') == 'C:\\Users\\me "quoted"'

    def test_literal_string_verbatim(self):
        """Single-quoted values are accepted and not unescaped."""
        assert parse_toml_string(r"'C:\Users\me'") == r"C:\Users\me"

    def test_unquoted_and_empty_values_are_none(self):
        """Bare, blank and unterminated values are not strings."""
        assert parse_toml_string("bare") is None
        assert parse_toml_string("   ") is None
        assert parse_toml_string('"') is None

    def test_serialize_escapes_backslash_and_quote(self):
        """Backslashes and double quotes are escaped on write."""
        assert serialize_toml_string('a\\b"c') == '"a\\\\b\\"c"'

    @pytest.mark.parametrize("value", ["", "plain", 'say "hi"', "trailing\\", '\\"', "ünï"])
    def test_serialize_then_parse(self, value):
        """Every serialized value parses back to itself."""
        assert parse_toml_string(serialize_toml_string(value)) == value


class TestFlatToml:
    def test_comments_blanks_and_malformed_lines_skipped(self):
        """Only key = value lines contribute entries."""
        text = '# header\n\nsync_path = "/tmp/x"\nnot a pair\n  # indented comment\n'
        assert parse_flat_toml(text) == {"sync_path": "/tmp/x"}

    def test_unparseable_value_maps_to_none(self):
        """An unquoted value keeps its key with a None value."""
        assert parse_flat_toml("sync_backend = file") == {"sync_backend": None}

    def test_value_may_contain_equals(self):
        """Only the first = separates key and value."""
        assert parse_flat_toml('webdav_url = "https://h/?a=b"') == {"webdav_url": "https://h/?a=b"}

    def test_serialize_emits_header_then_one_line_per_item(self):
        """The header comes first, then each pair in order."""
        text = serialize_flat_toml([("sync_path", "/a"), ("sync_backend", "file")], "# hdr")
        assert text == '# hdr\nsync_path = "/a"\nsync_backend = "file"\n'

    def test_serialize_header_only(self):
        """An empty table is just the header line."""
        assert serialize_flat_toml([], "# hdr") == "# hdr\n"
