"""Tests for StructuredOutputParser and the Pope record."""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from chat_pipeline.errors import ParseFailure
from chat_pipeline.output_parser import StructuredOutputParser
from chat_pipeline.records import Pope

from tests.conftest import POPE_267


@pytest.fixture
def parser():
    return StructuredOutputParser(Pope)


class TestParse:
    def test_well_formed_payload(self, parser, pope_json):
        pope = parser.parse(pope_json)

        assert pope.pontiff_number == 267
        assert pope.nationalities == ("Argentine",)
        assert pope.pontiff_start_date == date(2013, 3, 13)
        assert pope.pontiff_end_date is None

    def test_markdown_fence_stripped(self, parser, pope_json):
        pope = parser.parse(f"```json\n{pope_json}\n```")
        assert pope.english_name == "Francis"

    def test_missing_pontiff_number(self, parser):
        payload = {k: v for k, v in POPE_267.items() if k != "pontiffNumber"}
        raw = json.dumps(payload)

        with pytest.raises(ParseFailure) as excinfo:
            parser.parse(raw)

        assert excinfo.value.raw_text == raw

    def test_malformed_date(self, parser):
        payload = dict(POPE_267, pontiffStartDate="13/03/2013")
        with pytest.raises(ParseFailure):
            parser.parse(json.dumps(payload))

    def test_type_mismatch(self, parser):
        payload = dict(POPE_267, pontiffNumber="two hundred")
        with pytest.raises(ParseFailure):
            parser.parse(json.dumps(payload))

    def test_not_json(self, parser):
        with pytest.raises(ParseFailure) as excinfo:
            parser.parse("The actual pope is Leo XIV")
        assert "Leo XIV" in excinfo.value.raw_text

    def test_empty_text(self, parser):
        with pytest.raises(ParseFailure):
            parser.parse("")


class TestFormatInstructions:
    def test_deterministic(self):
        assert StructuredOutputParser(Pope).format_instructions == StructuredOutputParser(Pope).format_instructions

    def test_schema_uses_wire_names(self, parser):
        text = parser.format_instructions
        assert "RFC8259" in text
        assert '"pontiffNumber"' in text
        assert '"pontiff_number"' not in text

    def test_pontiff_number_required_in_schema(self, parser):
        assert parser.schema["required"] == ["pontiffNumber"]


class TestPopeRecord:
    def test_nationalities_copied_on_construction(self):
        source = ["Argentine"]
        pope = Pope(pontiffNumber=267, nationalities=source)

        source.append("Italian")

        assert pope.nationalities == ("Argentine",)

    def test_nationalities_cannot_be_mutated(self, parser, pope_json):
        pope = parser.parse(pope_json)

        with pytest.raises(AttributeError):
            pope.nationalities.append("Italian")

        assert pope.nationalities == ("Argentine",)

    def test_nationalities_default_empty(self):
        assert Pope(pontiffNumber=1).nationalities == ()

    def test_nationalities_schema_is_string_array(self, parser):
        prop = parser.schema["properties"]["nationalities"]
        assert prop["type"] == "array"
        assert prop["items"] == {"type": "string"}

    def test_snake_case_population(self):
        pope = Pope(pontiff_number=1, english_name="Peter")
        assert pope.english_name == "Peter"

    def test_frozen(self):
        pope = Pope(pontiffNumber=1)
        with pytest.raises(ValidationError):
            pope.pontiff_number = 2
