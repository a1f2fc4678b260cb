"""SBE wire layouts derived from annotated message descriptors.

Descriptors here are a small, self-contained model of protobuf message
schemas carrying the SBE annotations: ``schema_id`` and ``version`` on
files, ``template_id`` on messages, and ``length`` and ``encoding`` on
fields.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping

__all__ = [
    "SbeError",
    "Kind",
    "FieldDescriptor",
    "MessageDescriptor",
    "FileDescriptor",
    "FieldTemplate",
    "GroupTemplate",
    "MessageTemplate",
    "sorted_fields",
    "field_encoding_size",
    "build_composite_fields",
    "build_group_template",
    "build_template",
    "ENC_INT8",
    "ENC_INT16",
    "ENC_INT32",
    "ENC_INT64",
    "ENC_UINT8",
    "ENC_UINT16",
    "ENC_UINT32",
    "ENC_UINT64",
    "ENC_FLOAT",
    "ENC_DOUBLE",
    "ENC_CHAR",
]

ENC_INT8 = "int8"
ENC_INT16 = "int16"
ENC_INT32 = "int32"
ENC_INT64 = "int64"
ENC_UINT8 = "uint8"
ENC_UINT16 = "uint16"
ENC_UINT32 = "uint32"
ENC_UINT64 = "uint64"
ENC_FLOAT = "float"
ENC_DOUBLE = "double"
ENC_CHAR = "char"

# Encodings accepted through an explicit (sbe.encoding) override.
_OVERRIDE_SIZES = {
    ENC_INT8: 1,
    ENC_UINT8: 1,
    ENC_INT16: 2,
    ENC_UINT16: 2,
    ENC_INT32: 4,
    ENC_UINT32: 4,
    ENC_FLOAT: 4,
    ENC_INT64: 8,
    ENC_UINT64: 8,
    ENC_DOUBLE: 8,
}


def _u16(value: int) -> int:
    return value & 0xFFFF


class SbeError(ValueError):
    """Raised when a schema cannot be laid out or data cannot be decoded."""


class Kind(enum.Enum):
    """Protobuf field kinds."""

    BOOL = "bool"
    INT32 = "int32"
    SINT32 = "sint32"
    SFIXED32 = "sfixed32"
    INT64 = "int64"
    SINT64 = "sint64"
    SFIXED64 = "sfixed64"
    UINT32 = "uint32"
    FIXED32 = "fixed32"
    UINT64 = "uint64"
    FIXED64 = "fixed64"
    FLOAT = "float"
    DOUBLE = "double"
    ENUM = "enum"
    STRING = "string"
    BYTES = "bytes"
    MESSAGE = "message"
    GROUP = "group"

    def __str__(self) -> str:
        return self.value


_KIND_ENCODINGS = {
    Kind.BOOL: (ENC_UINT8, 1),
    Kind.INT32: (ENC_INT32, 4),
    Kind.SINT32: (ENC_INT32, 4),
    Kind.SFIXED32: (ENC_INT32, 4),
    Kind.INT64: (ENC_INT64, 8),
    Kind.SINT64: (ENC_INT64, 8),
    Kind.SFIXED64: (ENC_INT64, 8),
    Kind.UINT32: (ENC_UINT32, 4),
    Kind.FIXED32: (ENC_UINT32, 4),
    Kind.UINT64: (ENC_UINT64, 8),
    Kind.FIXED64: (ENC_UINT64, 8),
    Kind.FLOAT: (ENC_FLOAT, 4),
    Kind.DOUBLE: (ENC_DOUBLE, 8),
    Kind.ENUM: (ENC_UINT8, 1),
}


@dataclass
class FieldDescriptor:
    """One field of a message.

    ``oneof`` names a real (non-synthetic) oneof the field belongs to;
    proto3 ``optional`` fields leave it as ``None``. ``length`` and
    ``encoding`` hold the (sbe.length) and (sbe.encoding) annotations.
    """

    name: str
    number: int
    kind: Kind
    message: MessageDescriptor | None = field(default=None, repr=False, compare=False)
    repeated: bool = False
    is_map: bool = False
    oneof: str | None = None
    length: int | None = None
    encoding: str | None = None

    @property
    def is_list(self) -> bool:
        """True for repeated fields that are not maps."""
        return self.repeated and not self.is_map


@dataclass
class MessageDescriptor:
    """A message type with its fields and nested message types."""

    name: str
    fields: list[FieldDescriptor] = field(default_factory=list)
    template_id: int | None = None
    messages: list[MessageDescriptor] = field(default_factory=list)
    full_name: str = ""

    def __post_init__(self) -> None:
        if not self.full_name:
            self.full_name = self.name


@dataclass
class FileDescriptor:
    """A schema file: its top-level messages and file-level SBE options."""

    path: str
    messages: list[MessageDescriptor] = field(default_factory=list)
    schema_id: int | None = None
    version: int | None = None


@dataclass(frozen=True)
class FieldTemplate:
    """A field's position in an SBE block; composites carry sub-fields."""

    fd: FieldDescriptor
    offset: int
    size: int
    encoding: str = ""
    composite: tuple[FieldTemplate, ...] = ()
    composite_by_name: Mapping[str, FieldTemplate] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "composite_by_name", {ft.fd.name: ft for ft in self.composite})

    @property
    def name(self) -> str:
        return self.fd.name


@dataclass(frozen=True)
class GroupTemplate:
    """An SBE repeating group."""

    fd: FieldDescriptor
    block_length: int
    fields: tuple[FieldTemplate, ...] = ()
    fields_by_name: Mapping[str, FieldTemplate] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields_by_name", {ft.fd.name: ft for ft in self.fields})

    @property
    def name(self) -> str:
        return self.fd.name


@dataclass(frozen=True)
class MessageTemplate:
    """The full SBE wire layout of a top-level message."""

    template_id: int
    schema_id: int
    version: int
    block_length: int
    fields: tuple[FieldTemplate, ...] = ()
    groups: tuple[GroupTemplate, ...] = ()
    fields_by_name: Mapping[str, FieldTemplate] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields_by_name", {ft.fd.name: ft for ft in self.fields})


def sorted_fields(md: MessageDescriptor) -> list[FieldDescriptor]:
    """The message's fields in field-number order, the SBE wire order."""
    return sorted(md.fields, key=lambda fd: fd.number)


def field_encoding_size(fd: FieldDescriptor) -> tuple[str, int]:
    """The SBE primitive encoding and byte size of a scalar field."""
    if fd.encoding is not None:
        size = _OVERRIDE_SIZES.get(fd.encoding)
        if size is None:
            raise SbeError(f'unknown encoding "{fd.encoding}"')
        return fd.encoding, size

    known = _KIND_ENCODINGS.get(fd.kind)
    if known is not None:
        return known
    if fd.kind in (Kind.STRING, Kind.BYTES):
        if fd.length is None:
            raise SbeError(f"{fd.kind} field requires (sbe.length) annotation")
        return ENC_CHAR, _u16(fd.length)
    raise SbeError(f"unsupported proto kind {fd.kind}")


def _require_message(fd: FieldDescriptor) -> MessageDescriptor:
    if fd.message is None:
        raise SbeError(f"message field {fd.name} has no message type")
    return fd.message


def _composite_template(fd: FieldDescriptor, offset: int) -> FieldTemplate:
    size, sub = build_composite_fields(_require_message(fd))
    return FieldTemplate(fd=fd, offset=offset, size=size, composite=sub)


def _scalar_template(fd: FieldDescriptor, offset: int) -> FieldTemplate:
    enc, size = field_encoding_size(fd)
    return FieldTemplate(fd=fd, offset=offset, size=size, encoding=enc)


def build_composite_fields(md: MessageDescriptor) -> tuple[int, tuple[FieldTemplate, ...]]:
    """Lay out a nested message inlined as an SBE composite; returns (size, fields)."""
    templates: list[FieldTemplate] = []
    offset = 0
    for fd in sorted_fields(md):
        if fd.is_list or fd.is_map:
            raise SbeError(f"composite {md.full_name} contains list/map field {fd.name}")
        if fd.oneof is not None:
            raise SbeError(f"composite {md.full_name} contains oneof field {fd.name}")
        if fd.kind is Kind.MESSAGE:
            ft = _composite_template(fd, offset)
        else:
            try:
                ft = _scalar_template(fd, offset)
            except SbeError as exc:
                raise SbeError(f"composite field {md.full_name}.{fd.name}: {exc}") from exc
        templates.append(ft)
        offset = _u16(offset + ft.size)
    return offset, tuple(templates)


def build_group_template(fd: FieldDescriptor) -> GroupTemplate:
    """Lay out a repeated message field as an SBE repeating group."""
    md = _require_message(fd)
    templates: list[FieldTemplate] = []
    offset = 0
    for f in sorted_fields(md):
        if f.is_map:
            raise SbeError(f"sbe: map field in group {md.full_name} not supported")
        if f.is_list:
            raise SbeError(f"sbe: nested repeated field in group {md.full_name} not supported")
        if f.kind is Kind.MESSAGE:
            try:
                ft = _composite_template(f, offset)
            except SbeError as exc:
                raise SbeError(f"sbe: composite in group {md.full_name}.{f.name}: {exc}") from exc
        else:
            try:
                ft = _scalar_template(f, offset)
            except SbeError as exc:
                raise SbeError(f"sbe: group field {md.full_name}.{f.name}: {exc}") from exc
        templates.append(ft)
        offset = _u16(offset + ft.size)
    return GroupTemplate(fd=fd, block_length=offset, fields=tuple(templates))


def build_template(md: MessageDescriptor, schema_id: int, version: int) -> MessageTemplate:
    """Lay out a top-level message that carries an (sbe.template_id)."""
    if md.template_id is None:
        raise SbeError(f"sbe: message {md.full_name} missing (sbe.template_id)")

    fields: list[FieldTemplate] = []
    groups: list[GroupTemplate] = []
    offset = 0
    for fd in sorted_fields(md):
        if fd.is_map:
            raise SbeError(f"sbe: map field {md.full_name}.{fd.name} not supported")
        if fd.oneof is not None:
            raise SbeError(f"sbe: oneof field {md.full_name}.{fd.name} not supported")

        if fd.is_list and fd.kind is Kind.MESSAGE:
            groups.append(build_group_template(fd))
            continue
        if fd.is_list:
            raise SbeError(
                f"sbe: repeated scalar field {md.full_name}.{fd.name} not supported; "
                "wrap in a message"
            )

        if fd.kind is Kind.MESSAGE:
            try:
                ft = _composite_template(fd, offset)
            except SbeError as exc:
                raise SbeError(f"sbe: composite {md.full_name}.{fd.name}: {exc}") from exc
        else:
            try:
                ft = _scalar_template(fd, offset)
            except SbeError as exc:
                raise SbeError(f"sbe: field {md.full_name}.{fd.name}: {exc}") from exc
        fields.append(ft)
        offset = _u16(offset + ft.size)

    return MessageTemplate(
        template_id=_u16(md.template_id),
        schema_id=_u16(schema_id),
        version=_u16(version),
        block_length=offset,
        fields=tuple(fields),
        groups=tuple(groups),
    )