"""Conversion of SBE XML schemas to annotated .proto source."""

from __future__ import annotations

from dataclasses import dataclass

from wirekit.sbe.xmlschema import (
    XMLComposite,
    XMLEnum,
    XMLField,
    XMLGroup,
    XMLMessage,
    XMLSchema,
    XMLType,
    camel_to_screaming_snake,
    camel_to_snake,
    parse_xml_schema,
    singular_pascal,
)

__all__ = ["xml_to_proto", "generate_proto", "resolve_type_to_proto"]

_PRIMITIVES = (
    "int8",
    "int16",
    "int32",
    "int64",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "float",
    "double",
    "char",
)

_INFRASTRUCTURE_COMPOSITES = frozenset({"messageHeader", "groupSizeEncoding"})

_PRIMITIVE_TO_PROTO = {
    "int8": ("int32", '(sbe.encoding) = "int8"'),
    "int16": ("int32", '(sbe.encoding) = "int16"'),
    "int32": ("int32", ""),
    "int64": ("int64", ""),
    "uint8": ("uint32", '(sbe.encoding) = "uint8"'),
    "uint16": ("uint32", '(sbe.encoding) = "uint16"'),
    "uint32": ("uint32", ""),
    "uint64": ("uint64", ""),
    "float": ("float", ""),
    "double": ("double", ""),
}


@dataclass(frozen=True)
class _TypeTables:
    types: dict[str, XMLType]
    composites: dict[str, XMLComposite]
    enums: dict[str, XMLEnum]


def xml_to_proto(xml_data: bytes | str) -> bytes:
    """Convert an SBE XML schema to a .proto file with SBE annotations."""
    return generate_proto(parse_xml_schema(xml_data))


def resolve_type_to_proto(primitive_type: str, length: int) -> tuple[str, str]:
    """Map an SBE primitive type to a proto type and its field options."""
    if primitive_type == "char":
        return "string", f"(sbe.length) = {length if length > 0 else 1}"
    return _PRIMITIVE_TO_PROTO.get(primitive_type, (primitive_type, ""))


def _field_line(indent: str, proto_type: str, name: str, number: int, opts: str = "") -> str:
    if opts:
        return f"{indent}{proto_type} {name} = {number} [{opts}];\n"
    return f"{indent}{proto_type} {name} = {number};\n"


def _write_enum(out: list[str], enum: XMLEnum, indent: str) -> None:
    out.append(f"{indent}enum {enum.name} {{\n")
    prefix = camel_to_screaming_snake(enum.name)
    for value in enum.valid_values:
        name = f"{prefix}_{camel_to_screaming_snake(value.name)}"
        out.append(f"{indent}  {name} = {value.value};\n")
    out.append(f"{indent}}}\n\n")


def _write_composite(out: list[str], composite: XMLComposite) -> None:
    out.append(f"message {composite.name} {{\n")
    number = 1
    for t in composite.types:
        proto_type, opts = resolve_type_to_proto(t.primitive_type, t.length)
        out.append(_field_line("  ", proto_type, camel_to_snake(t.name), number, opts))
        number += 1
    for ref in composite.refs:
        out.append(_field_line("  ", ref.type, camel_to_snake(ref.name), number))
        number += 1
    out.append("}\n\n")


def _write_field(out: list[str], f: XMLField, tables: _TypeTables, indent: str) -> None:
    name = camel_to_snake(f.name)
    if f.type in tables.enums or f.type in tables.composites:
        out.append(_field_line(indent, f.type, name, f.id))
        return
    resolved = tables.types.get(f.type)
    if resolved is not None:
        proto_type, opts = resolve_type_to_proto(resolved.primitive_type, resolved.length)
        out.append(_field_line(indent, proto_type, name, f.id, opts))
        return
    # Unknown types pass through unchanged.
    out.append(_field_line(indent, f.type, name, f.id))


def _write_group(out: list[str], group: XMLGroup, tables: _TypeTables, indent: str) -> None:
    msg_name = singular_pascal(group.name)
    out.append(f"{indent}message {msg_name} {{\n")
    for f in group.fields:
        _write_field(out, f, tables, indent + "  ")
    out.append(f"{indent}}}\n")
    out.append(f"{indent}repeated {msg_name} {camel_to_snake(group.name)} = {group.id};\n")


def _write_message(out: list[str], msg: XMLMessage, tables: _TypeTables, indent: str) -> None:
    out.append(f"{indent}message {msg.name} {{\n")
    out.append(f"{indent}  option (sbe.template_id) = {msg.id};\n")
    for f in msg.fields:
        _write_field(out, f, tables, indent + "  ")
    for group in msg.groups:
        _write_group(out, group, tables, indent + "  ")
    out.append(f"{indent}}}\n\n")


def generate_proto(schema: XMLSchema) -> bytes:
    """Render a parsed SBE schema as annotated .proto source."""
    types = {name: XMLType(name=name, primitive_type=name) for name in _PRIMITIVES}
    types.update((t.name, t) for t in schema.types.types)
    tables = _TypeTables(
        types=types,
        composites={c.name: c for c in schema.types.composites},
        enums={e.name: e for e in schema.types.enums},
    )

    out: list[str] = ['syntax = "proto3";\n\n']
    if schema.package:
        out.append(f"package {schema.package};\n\n")
    out.append('import "sbe/annotations.proto";\n\n')
    out.append(f"option (sbe.schema_id) = {schema.id};\n")
    out.append(f"option (sbe.version) = {schema.version};\n\n")

    for enum in schema.types.enums:
        _write_enum(out, enum, "")
    for composite in schema.types.composites:
        if composite.name not in _INFRASTRUCTURE_COMPOSITES:
            _write_composite(out, composite)
    for msg in schema.messages:
        _write_message(out, msg, tables, "")

    return "".join(out).encode("utf-8")