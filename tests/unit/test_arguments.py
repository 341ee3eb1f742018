"""Tests for argument descriptors: schema building, name mapping and decoding."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from gitlab_mcp_bridge.arguments import UInt, arg, build_schema, decode, describe, to_snake
from gitlab_mcp_bridge.exceptions import DescriptorError, InvalidArgumentError
from gitlab_mcp_bridge.scalars import ID, OptionalBool


@dataclass
class Sample:
    name: str = arg("A name", required=True)
    count: int = arg("A count")
    ratio: float = arg("A ratio")
    size: UInt = arg("A non-negative size")
    enabled: bool = arg("A flag")
    project_id: ID = arg("A project", required=True)
    locked: OptionalBool = arg("A tri-state flag")
    state: str = arg("A state", enum=("opened", "closed"))


class TestToSnake:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Field", "field"),
            ("FieldName", "field_name"),
            ("HTTPServer", "http_server"),
            ("ExportDNS", "export_dns"),
            ("AssigneeIDs", "assignee_ids"),
            ("ProjectID", "project_id"),
            ("already_snake", "already_snake"),
        ],
    )
    def test_mapping(self, name, expected):
        assert to_snake(name) == expected

    def test_camel_case_field_is_exposed_in_snake_case(self):
        @dataclass
        class Camel:
            AssigneeIDs: str = arg("Assignees")

        schema = build_schema(Camel)
        assert list(schema["properties"]) == ["assignee_ids"]
        assert decode({"assignee_ids": "1,2"}, Camel).AssigneeIDs == "1,2"


class TestBuildSchema:
    def test_kinds_and_required(self):
        schema = build_schema(Sample)
        props = schema["properties"]
        assert schema["type"] == "object"
        assert schema["required"] == ["name", "project_id"]
        assert props["name"] == {"type": "string", "description": "A name"}
        assert props["count"]["type"] == "number"
        assert props["ratio"]["type"] == "number"
        assert props["size"]["type"] == "number"
        assert props["enabled"]["type"] == "boolean"
        assert props["project_id"]["type"] == "string"
        assert props["locked"]["type"] == "boolean"
        assert props["state"]["enum"] == ["opened", "closed"]

    def test_no_required_key_without_required_fields(self):
        @dataclass
        class Optional:
            note: str = arg("A note")

        assert "required" not in build_schema(Optional)

    def test_descriptor_errors_are_collected(self):
        @dataclass
        class Broken:
            undocumented: str = arg("")
            nested: dict = arg("A mapping")
            items: list[str] = arg("A sequence")
            number: int = arg("A number", enum=("1", "2"))

        with pytest.raises(DescriptorError) as exc_info:
            describe(Broken)
        problems = exc_info.value.problems
        assert len(problems) == 4
        assert "field undocumented: missing description" in problems
        assert any("nested" in p and "unsupported type" in p for p in problems)
        assert any("items" in p and "unsupported type" in p for p in problems)
        assert any("enum is only allowed on string fields" in p for p in problems)

    def test_not_a_dataclass(self):
        class Plain:
            pass

        with pytest.raises(DescriptorError, match="not a dataclass"):
            describe(Plain)


class TestDecode:
    def test_absent_optional_fields_take_zero_values(self):
        args = decode({"name": "x", "project_id": "1"}, Sample)
        assert args.count == 0
        assert args.ratio == 0.0
        assert args.size == 0
        assert args.enabled is False
        assert args.state == ""
        assert args.locked == OptionalBool()
        assert args.locked.ptr() is None

    def test_schema_defaults_round_trip_to_zero_values(self):
        required = {"name": "x", "project_id": "owner/ns"}
        args = decode(required, Sample)
        for spec in describe(Sample):
            if spec.name in required:
                continue
            value = getattr(args, spec.attr)
            assert not value or value == OptionalBool()

    def test_missing_required(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            decode({}, Sample)
        assert exc_info.value.problems == [
            "missing required argument 'name'",
            "missing required argument 'project_id'",
        ]

    def test_none_arguments_treated_as_empty(self):
        @dataclass
        class Optional:
            note: str = arg("A note")

        assert decode(None, Optional).note == ""

    def test_float_truncates_to_int(self):
        args = decode({"name": "x", "project_id": "1", "count": 3.9}, Sample)
        assert args.count == 3

    def test_int_widens_to_float(self):
        args = decode({"name": "x", "project_id": "1", "ratio": 2}, Sample)
        assert args.ratio == 2.0
        assert isinstance(args.ratio, float)

    def test_string_is_not_a_number(self):
        with pytest.raises(InvalidArgumentError, match="argument 'count'"):
            decode({"name": "x", "project_id": "1", "count": "42"}, Sample)

    def test_number_is_not_a_string(self):
        with pytest.raises(InvalidArgumentError, match="argument 'name'"):
            decode({"name": 42, "project_id": "1"}, Sample)

    def test_bool_is_not_a_number(self):
        with pytest.raises(InvalidArgumentError, match="argument 'count'"):
            decode({"name": "x", "project_id": "1", "count": True}, Sample)

    def test_negative_unsigned_rejected(self):
        with pytest.raises(InvalidArgumentError, match="unsigned"):
            decode({"name": "x", "project_id": "1", "size": -1}, Sample)

    def test_unknown_enum_member_rejected(self):
        with pytest.raises(InvalidArgumentError, match="not one of opened, closed"):
            decode({"name": "x", "project_id": "1", "state": "merged"}, Sample)

    def test_empty_string_allowed_for_enum(self):
        assert decode({"name": "x", "project_id": "1", "state": ""}, Sample).state == ""

    def test_custom_scalar_error_propagates(self):
        with pytest.raises(InvalidArgumentError, match="argument 'project_id'"):
            decode({"name": "x", "project_id": 7}, Sample)

    def test_all_problems_reported_together(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            decode({"project_id": 7, "count": "many"}, Sample)
        assert len(exc_info.value.problems) == 3

    def test_unknown_keys_ignored(self):
        args = decode({"name": "x", "project_id": "1", "extra": [1, 2]}, Sample)
        assert args.name == "x"
