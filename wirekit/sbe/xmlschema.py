"""SBE XML message schema model, parser and naming helpers."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator

__all__ = [
    "XMLType",
    "XMLRef",
    "XMLComposite",
    "XMLValidValue",
    "XMLEnum",
    "XMLField",
    "XMLGroup",
    "XMLMessage",
    "XMLTypes",
    "XMLSchema",
    "SchemaParseError",
    "parse_xml_schema",
    "camel_to_snake",
    "snake_to_camel",
    "camel_to_screaming_snake",
    "screaming_snake_to_pascal",
    "strip_enum_prefix",
    "singular_pascal",
]

_UINT32_MAX = 0xFFFFFFFF
_DIGITS = re.compile(r"[0-9]+")


class SchemaParseError(ValueError):
    """Raised when an SBE XML schema cannot be parsed."""


@dataclass
class XMLType:
    """A simple SBE type definition."""

    name: str = ""
    primitive_type: str = ""
    length: int = 0
    description: str = ""


@dataclass
class XMLRef:
    """A reference to another type inside a composite."""

    name: str = ""
    type: str = ""


@dataclass
class XMLComposite:
    """An SBE composite type definition."""

    name: str = ""
    description: str = ""
    types: list[XMLType] = field(default_factory=list)
    refs: list[XMLRef] = field(default_factory=list)


@dataclass
class XMLValidValue:
    """One value of an SBE enum."""

    name: str = ""
    value: str = ""


@dataclass
class XMLEnum:
    """An SBE enum type definition."""

    name: str = ""
    encoding_type: str = ""
    description: str = ""
    valid_values: list[XMLValidValue] = field(default_factory=list)


@dataclass
class XMLField:
    """A field of an SBE message or group."""

    name: str = ""
    id: int = 0
    type: str = ""


@dataclass
class XMLGroup:
    """An SBE repeating group."""

    name: str = ""
    id: int = 0
    fields: list[XMLField] = field(default_factory=list)


@dataclass
class XMLMessage:
    """An SBE message template."""

    name: str = ""
    id: int = 0
    description: str = ""
    fields: list[XMLField] = field(default_factory=list)
    groups: list[XMLGroup] = field(default_factory=list)


@dataclass
class XMLTypes:
    """The type definitions of a schema."""

    types: list[XMLType] = field(default_factory=list)
    composites: list[XMLComposite] = field(default_factory=list)
    enums: list[XMLEnum] = field(default_factory=list)


@dataclass
class XMLSchema:
    """A whole SBE XML message schema."""

    package: str = ""
    id: int = 0
    version: int = 0
    byte_order: str = ""
    description: str = ""
    types: XMLTypes = field(default_factory=XMLTypes)
    messages: list[XMLMessage] = field(default_factory=list)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(el: ET.Element, name: str) -> Iterator[ET.Element]:
    return (child for child in el if isinstance(child.tag, str) and _local(child.tag) == name)


def _uint32(el: ET.Element, attr: str) -> int:
    raw = (el.get(attr) or "").strip()
    if not raw:
        return 0
    if not _DIGITS.fullmatch(raw):
        raise SchemaParseError(f"sbe: parse XML schema: invalid {attr} value {raw!r}")
    value = int(raw)
    if value > _UINT32_MAX:
        raise SchemaParseError(f"sbe: parse XML schema: {attr} value {raw} out of range")
    return value


def _chardata(el: ET.Element) -> str:
    parts = [el.text or ""]
    parts.extend(child.tail or "" for child in el)
    return "".join(parts)


def _parse_type(el: ET.Element) -> XMLType:
    return XMLType(
        name=el.get("name", ""),
        primitive_type=el.get("primitiveType", ""),
        length=_uint32(el, "length"),
        description=el.get("description", ""),
    )


def _parse_composite(el: ET.Element) -> XMLComposite:
    return XMLComposite(
        name=el.get("name", ""),
        description=el.get("description", ""),
        types=[_parse_type(t) for t in _children(el, "type")],
        refs=[XMLRef(name=r.get("name", ""), type=r.get("type", "")) for r in _children(el, "ref")],
    )


def _parse_enum(el: ET.Element) -> XMLEnum:
    return XMLEnum(
        name=el.get("name", ""),
        encoding_type=el.get("encodingType", ""),
        description=el.get("description", ""),
        valid_values=[
            XMLValidValue(name=v.get("name", ""), value=_chardata(v))
            for v in _children(el, "validValue")
        ],
    )


def _parse_field(el: ET.Element) -> XMLField:
    return XMLField(name=el.get("name", ""), id=_uint32(el, "id"), type=el.get("type", ""))


def _parse_group(el: ET.Element) -> XMLGroup:
    return XMLGroup(
        name=el.get("name", ""),
        id=_uint32(el, "id"),
        fields=[_parse_field(f) for f in _children(el, "field")],
    )


def _parse_message(el: ET.Element) -> XMLMessage:
    return XMLMessage(
        name=el.get("name", ""),
        id=_uint32(el, "id"),
        description=el.get("description", ""),
        fields=[_parse_field(f) for f in _children(el, "field")],
        groups=[_parse_group(g) for g in _children(el, "group")],
    )


def parse_xml_schema(data: bytes | str) -> XMLSchema:
    """Parse an SBE XML schema document."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    # Drop the SBE namespace prefix from message elements.
    raw = raw.replace(b"sbe:message", b"message")
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise SchemaParseError(f"sbe: parse XML schema: {exc}") from exc

    root_name = _local(root.tag)
    if root_name != "messageSchema":
        raise SchemaParseError(
            f"sbe: parse XML schema: expected element type <messageSchema> but have <{root_name}>"
        )

    types = XMLTypes()
    for types_el in _children(root, "types"):
        types.types.extend(_parse_type(t) for t in _children(types_el, "type"))
        types.composites.extend(_parse_composite(c) for c in _children(types_el, "composite"))
        types.enums.extend(_parse_enum(e) for e in _children(types_el, "enum"))

    return XMLSchema(
        package=root.get("package", ""),
        id=_uint32(root, "id"),
        version=_uint32(root, "version"),
        byte_order=root.get("byteOrder", ""),
        description=root.get("description", ""),
        types=types,
        messages=[_parse_message(m) for m in _children(root, "message")],
    )


def _upper_first(s: str) -> str:
    return s[0].upper() + s[1:]


def camel_to_snake(s: str) -> str:
    """Convert camelCase or PascalCase to snake_case, keeping acronyms together."""
    out: list[str] = []
    for i, ch in enumerate(s):
        if ch.isupper():
            if i > 0:
                prev = s[i - 1]
                if prev.islower() or (i + 1 < len(s) and s[i + 1].islower()):
                    out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def snake_to_camel(s: str) -> str:
    """Convert snake_case to camelCase."""
    out: list[str] = []
    for i, part in enumerate(s.split("_")):
        if not part:
            continue
        out.append(part if i == 0 else _upper_first(part))
    return "".join(out)


def camel_to_screaming_snake(s: str) -> str:
    """Convert camelCase or PascalCase to SCREAMING_SNAKE_CASE."""
    out: list[str] = []
    for i, ch in enumerate(s):
        if ch.isupper() and i > 0 and s[i - 1].islower():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)


def screaming_snake_to_pascal(s: str) -> str:
    """Convert SCREAMING_SNAKE_CASE to PascalCase."""
    return "".join(_upper_first(part) for part in s.lower().split("_") if part)


def strip_enum_prefix(value_name: str, enum_name: str) -> str:
    """Drop the enum-name prefix from a value name and return it in PascalCase."""
    prefix = camel_to_screaming_snake(enum_name) + "_"
    if value_name.startswith(prefix):
        return screaming_snake_to_pascal(value_name[len(prefix):])
    return screaming_snake_to_pascal(value_name)


def singular_pascal(s: str) -> str:
    """Naively singularise a plural name and capitalise it."""
    if not s:
        return s
    if s.endswith("ies") and len(s) > 3:
        s = s[:-3] + "y"
    elif s.endswith("s") and not s.endswith("ss") and len(s) > 1:
        s = s[:-1]
    return _upper_first(s)