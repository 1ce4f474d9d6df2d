"""Tests for tilescope.core.script_region – sentinel region recovery."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from tilescope.core.errors import LevelFormatError, NormalizationParseError
from tilescope.core.levels import ParsedLevel
from tilescope.core.script_region import (
    BEGIN_MARKER,
    END_MARKER,
    ScriptRegionParser,
    SentinelRegionExtractor,
    normalize,
)


@pytest.fixture()
def parser() -> ScriptRegionParser:
    return ScriptRegionParser()


def _wrap(region: str) -> str:
    return f"var x = 1;\n{BEGIN_MARKER}{region}{END_MARKER}\nvar y = 2;\n"


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------

class TestNormalize:
    def test_quotes_bare_keys(self):
        assert normalize("{a: 1, b_2: 2}") == '{"a": 1, "b_2": 2}'

    def test_leaves_quoted_keys(self):
        assert normalize('{"a": 1}') == '{"a": 1}'

    def test_quotes_every_occurrence_of_repeated_key(self):
        out = normalize("[{name: 1}, {name: 2}]")
        assert out == '[{"name": 1}, {"name": 2}]'

    def test_removes_trailing_comma_before_brace(self):
        assert normalize('{"a": 1,}') == '{"a": 1}'

    def test_removes_trailing_comma_before_bracket_across_whitespace(self):
        assert normalize("[1, 2,\n   ]") == "[1, 2\n   ]"

    def test_keeps_separating_commas(self):
        assert normalize("[1, 2]") == "[1, 2]"

    def test_idempotent(self):
        once = normalize("{a: [1, 2,], b: {c: 3,},}")
        assert normalize(once) == once


# ---------------------------------------------------------------------------
# SentinelRegionExtractor
# ---------------------------------------------------------------------------

class TestSentinelRegionExtractor:
    def test_extracts_body(self):
        assert SentinelRegionExtractor().extract(_wrap("{a: 1}")) == "{a: 1}"

    def test_strips_trailing_semicolon_and_single_space(self):
        text = f"{BEGIN_MARKER} {{a: 1}}; {END_MARKER}"
        assert SentinelRegionExtractor().extract(text) == "{a: 1}"

    def test_spans_lines(self):
        text = f"{BEGIN_MARKER}{{\n a: 1\n}}{END_MARKER}"
        assert SentinelRegionExtractor().extract(text) == "{\n a: 1\n}"

    def test_first_region_wins(self):
        text = _wrap("{a: 1}") + _wrap("{b: 2}")
        assert SentinelRegionExtractor().extract(text) == "{a: 1}"

    def test_no_region(self):
        assert SentinelRegionExtractor().extract("no markers here") is None

    def test_missing_end_marker(self):
        assert SentinelRegionExtractor().extract(f"{BEGIN_MARKER}{{a: 1}}") is None

    def test_end_marker_inside_data_truncates(self):
        # Known limitation: no bracket balancing.
        text = f'{BEGIN_MARKER}{{a: "{END_MARKER}", b: 2}}{END_MARKER}'
        assert SentinelRegionExtractor().extract(text) == '{a: "'


# ---------------------------------------------------------------------------
# ScriptRegionParser – happy paths
# ---------------------------------------------------------------------------

class TestParserHappy:
    def test_parses_editor_style_script(self, parser, make_script, make_layer):
        layers = [
            make_layer(name="bg", width=2, height=3, tilesize=16, fill=5, repeat=True),
            make_layer(name="fg", width=4, height=2, tilesize=8, fill=0),
        ]
        level = parser.parse(make_script(layers))
        assert isinstance(level, ParsedLevel)
        assert [layer.name for layer in level.layers] == ["bg", "fg"]
        bg, fg = level.layers
        assert (bg.width, bg.height, bg.tile_size) == (2, 3, 16)
        assert bg.repeat is True and bg.visible is True
        assert bg.data == ((5, 5), (5, 5), (5, 5))
        assert (fg.width, fg.height, fg.tile_size) == (4, 2, 8)
        assert fg.data == ((0, 0, 0, 0), (0, 0, 0, 0))

    def test_success_carries_no_error(self, parser, make_script, make_layer):
        level, error = parser.parse_with_error(make_script([make_layer()]))
        assert isinstance(level, ParsedLevel)
        assert error is None

    def test_matches_source_literal(self, parser, make_script, make_layer):
        layers = [make_layer(name="fg", data=[[0, 1, 2, 3]] * 4)]
        payload = parser.parse_payload(make_script(layers))
        assert payload["layer"] == layers
        assert payload["entity"] == []

    def test_reparse_of_own_output_is_identical(self, parser, make_script, make_layer):
        level = parser.parse(make_script([make_layer(name="a"), make_layer(name="b", fill=3)]))
        again = parser.parse(_wrap(json.dumps(level.to_dict())))
        assert again == level

    def test_same_input_same_output(self, parser, make_script, make_layer):
        script = make_script([make_layer()])
        assert parser.parse(script) == parser.parse(script)

    def test_missing_layer_key_means_no_layers(self, parser):
        assert parser.parse(_wrap("{entity: []}")) == ParsedLevel(layers=())

    def test_numeric_flags_accepted(self, parser, make_script, make_layer):
        level = parser.parse(make_script([make_layer(visible=1, repeat=0)]))
        assert level.layers[0].visible is True
        assert level.layers[0].repeat is False


# ---------------------------------------------------------------------------
# ScriptRegionParser – absent results
# ---------------------------------------------------------------------------

class TestParserAbsent:
    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_input(self, parser, raw, caplog):
        with caplog.at_level(logging.DEBUG, logger="tilescope.core.script_region"):
            assert parser.parse_with_error(raw) == (None, None)
        assert "No level data" in caplog.text

    def test_no_region(self, parser, caplog):
        with caplog.at_level(logging.DEBUG, logger="tilescope.core.script_region"):
            assert parser.parse_with_error("ig.module('x');") == (None, None)
        assert "region found" in caplog.text

    def test_malformed_region(self, parser, caplog):
        with caplog.at_level(logging.WARNING, logger="tilescope.core.script_region"):
            level, error = parser.parse_with_error(_wrap("{layer: [1 2]}"))
        assert level is None
        assert isinstance(error, NormalizationParseError)
        assert error.region == '{"layer": [1 2]}'
        assert "Could not decode" in caplog.text

    def test_non_object_payload(self, parser):
        level, error = parser.parse_with_error(_wrap("[1, 2]"))
        assert level is None
        assert isinstance(error, LevelFormatError)

    def test_bad_layer_shape(self, parser, make_layer):
        layer = make_layer(width=3, height=2, data=[[1, 1, 1], [1, 1]])
        level, error = parser.parse_with_error(_wrap(json.dumps({"layer": [layer]})))
        assert level is None
        assert isinstance(error, LevelFormatError)

    def test_errors_do_not_leak_between_calls(self, parser, make_script, make_layer):
        _, first = parser.parse_with_error(_wrap("{oops"))
        _, second = parser.parse_with_error(make_script([make_layer()]))
        assert first is not None
        assert second is None

    def test_parse_drops_the_error(self, parser):
        assert parser.parse(_wrap("{layer: [1 2]}")) is None


class TestCustomExtractor:
    def test_extractor_is_pluggable(self):
        class WholeText:
            def extract(self, text):
                return text

        parser = ScriptRegionParser(extractor=WholeText())
        level = parser.parse('{layer: [],}')
        assert level == ParsedLevel(layers=())


class TestShippedLevels:
    LEVELS_DIR = Path(__file__).resolve().parent.parent / "levels"

    def test_forest(self, parser):
        level = parser.parse((self.LEVELS_DIR / "forest.js").read_text(encoding="utf-8"))
        assert [layer.name for layer in level.layers] == ["sky", "ground", "trees", "collision"]
        sky = level.layers[0]
        assert sky.repeat is True and sky.tile_size == 64
        assert level.layers[1].data[5] == (2,) * 8

    def test_cave(self, parser):
        level = parser.parse((self.LEVELS_DIR / "cave.js").read_text(encoding="utf-8"))
        assert len(level.layers) == 1
        assert level.layers[0].data[3][3] == 4
