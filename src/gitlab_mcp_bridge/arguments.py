"""Tool argument descriptors.

Every tool declares its arguments once, as a dataclass whose fields carry
:func:`arg` metadata. The same declaration produces the JSON schema that is
advertised to MCP clients (:func:`build_schema`) and decodes the argument map
of each call into an instance of the dataclass (:func:`decode`).

Field names are exposed in snake_case. CamelCase names are converted with
:func:`to_snake`, so ``AssigneeIDs`` and ``assignee_ids`` both become
``assignee_ids``.

Value types:

* ``str`` -> string, ``bool`` -> boolean, ``int``/``UInt``/``float`` -> number
* any class with an ``mcp_type`` attribute and a ``decode`` classmethod, such
  as :class:`~gitlab_mcp_bridge.scalars.ID`, is advertised with that kind and
  decodes itself from the raw value
"""

from __future__ import annotations

import dataclasses
import functools
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, TypeVar, get_args, get_origin, get_type_hints

from .exceptions import DescriptorError, InvalidArgumentError, InvalidTypeError

T = TypeVar("T")

METADATA_KEY = "mcp"
KINDS = ("string", "number", "boolean")


class Unsigned:
    """Marks an integer argument that must not be negative."""

    def __repr__(self) -> str:
        return "Unsigned()"


UInt = Annotated[int, Unsigned()]

_PRIMITIVE_KINDS: dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
}


@dataclass(frozen=True)
class Argument:
    description: str
    required: bool = False
    enum: tuple[str, ...] = ()


def arg(
    description: str,
    *,
    required: bool = False,
    enum: tuple[str, ...] | list[str] | None = None,
) -> Any:
    """Declare a tool argument field."""
    meta = Argument(description, required, tuple(enum) if enum else ())
    return dataclasses.field(metadata={METADATA_KEY: meta})


@dataclass(frozen=True)
class FieldSpec:
    attr: str
    name: str
    type: Any
    kind: str
    argument: Argument
    unsigned: bool = False

    @property
    def decoder(self) -> Any:
        return getattr(self.type, "decode", None) if isinstance(self.type, type) else None


def to_snake(name: str) -> str:
    """Convert a CamelCase field name to its external snake_case name.

    An underscore goes before an uppercase letter that follows a lowercase
    letter or that starts a new word after an acronym (``HTTPServer`` ->
    ``http_server``). A trailing ``IDs`` is one word: ``AssigneeIDs`` ->
    ``assignee_ids``.
    """
    if name.endswith("IDs"):
        name = name[:-3] + "Ids"
    out: list[str] = []
    for i, ch in enumerate(name):
        if i > 0 and ch.isupper():
            prev_lower = name[i - 1].islower()
            next_lower = i + 1 < len(name) and name[i + 1].islower()
            if prev_lower or next_lower:
                out.append("_")
        out.append(ch.lower())
    return "".join(out)


def _resolve_kind(tp: Any) -> tuple[str | None, bool]:
    unsigned = False
    if get_origin(tp) is Annotated:
        tp, *extras = get_args(tp)
        unsigned = any(isinstance(e, Unsigned) for e in extras)
        if unsigned and tp is not int:
            return None, unsigned
    custom = getattr(tp, "mcp_type", None) if isinstance(tp, type) else None
    if custom is not None:
        return (custom if custom in KINDS else None), unsigned
    return _PRIMITIVE_KINDS.get(tp), unsigned


@functools.cache
def describe(cls: type) -> tuple[FieldSpec, ...]:
    """Validate *cls* as an argument descriptor and return its fields in order.

    All problems are collected and raised together as one DescriptorError.
    """
    if not dataclasses.is_dataclass(cls):
        raise DescriptorError(cls.__name__, ["not a dataclass"])
    hints = get_type_hints(cls, include_extras=True)
    problems: list[str] = []
    specs: list[FieldSpec] = []
    for f in dataclasses.fields(cls):
        meta = f.metadata.get(METADATA_KEY)
        if not isinstance(meta, Argument) or not meta.description:
            problems.append(f"field {f.name}: missing description")
            continue
        if not isinstance(meta.required, bool):
            problems.append(f"field {f.name}: required must be a bool, got {meta.required!r}")
        tp = hints[f.name]
        kind, unsigned = _resolve_kind(tp)
        if kind is None:
            problems.append(f"field {f.name}: unsupported type {tp!r}")
            continue
        if meta.enum and kind != "string":
            problems.append(f"field {f.name}: enum is only allowed on string fields")
        specs.append(FieldSpec(f.name, to_snake(f.name), tp, kind, meta, unsigned))
    if problems:
        raise DescriptorError(cls.__name__, problems)
    return tuple(specs)


def build_schema(cls: type) -> dict[str, Any]:
    """Return the MCP input schema for the argument descriptor *cls*."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for spec in describe(cls):
        prop: dict[str, Any] = {"type": spec.kind, "description": spec.argument.description}
        if spec.argument.enum:
            prop["enum"] = list(spec.argument.enum)
        properties[spec.name] = prop
        if spec.argument.required:
            required.append(spec.name)
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _base_type(tp: Any) -> Any:
    return get_args(tp)[0] if get_origin(tp) is Annotated else tp


def zero_value(spec: FieldSpec) -> Any:
    base = _base_type(spec.type)
    if spec.decoder is not None:
        return base()
    return {str: "", bool: False, int: 0, float: 0.0}[base]


def _convert(spec: FieldSpec, raw: Any) -> Any:
    if spec.decoder is not None:
        return spec.decoder(raw)
    if raw is None:
        raise InvalidTypeError("null is not a valid value")
    base = _base_type(spec.type)
    if base is str:
        if not isinstance(raw, str):
            raise InvalidTypeError(f"expected string, got {type(raw).__name__}")
        if raw and spec.argument.enum and raw not in spec.argument.enum:
            raise InvalidTypeError(
                f"{raw!r} is not one of {', '.join(spec.argument.enum)}"
            )
        return raw
    if base is bool:
        if not isinstance(raw, bool):
            raise InvalidTypeError(f"expected boolean, got {type(raw).__name__}")
        return raw
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidTypeError(f"expected number, got {type(raw).__name__}")
    if isinstance(raw, float) and not math.isfinite(raw):
        raise InvalidTypeError(f"{raw} is not a finite number")
    if base is float:
        return float(raw)
    if spec.unsigned and raw < 0:
        raise InvalidTypeError(f"negative value {raw} for unsigned argument")
    return int(raw)


def decode(arguments: Mapping[str, Any] | None, cls: type[T]) -> T:
    """Populate an instance of *cls* from an MCP argument map.

    Absent optional arguments take the zero value of their type. Every
    problem is reported in a single InvalidArgumentError.
    """
    arguments = arguments or {}
    values: dict[str, Any] = {}
    problems: list[str] = []
    for spec in describe(cls):
        if spec.name not in arguments:
            if spec.argument.required:
                problems.append(f"missing required argument {spec.name!r}")
            values[spec.attr] = zero_value(spec)
            continue
        try:
            values[spec.attr] = _convert(spec, arguments[spec.name])
        except (InvalidTypeError, InvalidArgumentError) as e:
            problems.append(f"argument {spec.name!r}: {e}")
    if problems:
        raise InvalidArgumentError(*problems)
    return cls(**values)


@dataclass
class NoArguments:
    """Descriptor for tools that take no arguments."""
