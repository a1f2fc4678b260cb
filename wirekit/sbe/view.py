"""Read-only access to SBE-encoded data straight from the buffer.

Accessors trust the schema: an unknown name raises ``KeyError`` and a
field read as the wrong category raises ``TypeError``. For untrusted
input decode with the codec instead, which validates every read.
"""

from __future__ import annotations

import struct
from typing import Iterator, Mapping, Sequence

from wirekit.sbe.template import (
    ENC_DOUBLE,
    ENC_FLOAT,
    ENC_INT8,
    ENC_INT16,
    ENC_INT32,
    ENC_INT64,
    ENC_UINT8,
    ENC_UINT16,
    ENC_UINT32,
    ENC_UINT64,
    FieldTemplate,
    GroupTemplate,
)

__all__ = ["View", "GroupView", "HEADER_SIZE", "GROUP_HEADER_SIZE"]

# blockLength, templateId, schemaId, version: four little-endian uint16.
HEADER_SIZE = 8
# blockLength, numInGroup: two little-endian uint16.
GROUP_HEADER_SIZE = 4

_SIGNED = {ENC_INT8: "<b", ENC_INT16: "<h", ENC_INT32: "<i", ENC_INT64: "<q"}
_UNSIGNED = {ENC_UINT8: "<B", ENC_UINT16: "<H", ENC_UINT32: "<I", ENC_UINT64: "<Q"}
_FLOATS = {ENC_FLOAT: "<f", ENC_DOUBLE: "<d"}
_ENUMS = {ENC_UINT8: "<B", ENC_UINT16: "<H"}
_GROUP_HEADER = struct.Struct("<HH")


class View:
    """A reader over one SBE block: a root block, group entry or composite.

    ``data`` is the whole message, used to walk to repeating groups;
    ``block`` is the block that field offsets are relative to.
    """

    __slots__ = ("_data", "_block", "_fields", "_groups")

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        block: bytes | bytearray | memoryview,
        fields: Mapping[str, FieldTemplate],
        groups: Sequence[GroupTemplate] = (),
    ) -> None:
        self._data = memoryview(data)
        self._block = memoryview(block)
        self._fields = fields
        self._groups = groups

    def _field(self, name: str) -> FieldTemplate:
        ft = self._fields.get(name)
        if ft is None:
            raise KeyError(f"sbe: unknown field: {name}")
        return ft

    def _read(self, name: str, formats: Mapping[str, str], problem: str) -> int | float:
        ft = self._field(name)
        fmt = formats.get(ft.encoding)
        if fmt is None:
            raise TypeError(f"sbe: field {name} {problem}")
        return struct.unpack_from(fmt, self._block, ft.offset)[0]

    def int_field(self, name: str) -> int:
        """Read a signed integer field (int8 to int64)."""
        return int(self._read(name, _SIGNED, "is not a signed integer"))

    def uint_field(self, name: str) -> int:
        """Read an unsigned integer field (uint8 to uint64), bools and enums included."""
        return int(self._read(name, _UNSIGNED, "is not an unsigned integer"))

    def float_field(self, name: str) -> float:
        """Read a float or double field."""
        return float(self._read(name, _FLOATS, "is not a float"))

    def bool_field(self, name: str) -> bool:
        """Read a boolean field: any non-zero first byte is true."""
        return self._block[self._field(name).offset] != 0

    def enum_field(self, name: str) -> int:
        """Read an enum field as its number."""
        return int(self._read(name, _ENUMS, "has unsupported enum encoding"))

    def string_field(self, name: str) -> str:
        """Read a fixed-length string field with trailing NUL padding removed."""
        ft = self._field(name)
        raw = bytes(self._block[ft.offset : ft.offset + ft.size]).rstrip(b"\x00")
        return raw.decode("utf-8", "surrogateescape")

    def bytes_field(self, name: str) -> bytes:
        """Read a fixed-length bytes field as is, padding included."""
        ft = self._field(name)
        return bytes(self._block[ft.offset : ft.offset + ft.size])

    def composite(self, name: str) -> View:
        """A view over a nested message field inlined as a composite."""
        ft = self._field(name)
        if not ft.composite:
            raise TypeError(f"sbe: field {name} is not a composite")
        return View(b"", self._block[ft.offset : ft.offset + ft.size], ft.composite_by_name)

    def group(self, name: str) -> GroupView:
        """The repeating group of that name, found by walking past earlier groups."""
        pos = HEADER_SIZE + len(self._block)
        for gt in self._groups:
            block_length, count = _GROUP_HEADER.unpack_from(self._data, pos)
            if gt.name == name:
                return GroupView(self._data[pos:], block_length, count, gt.fields_by_name)
            pos += GROUP_HEADER_SIZE + count * block_length
        raise KeyError(f"sbe: unknown group: {name}")


class GroupView:
    """The entries of one SBE repeating group."""

    __slots__ = ("_data", "_block_length", "_count", "_fields")

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        block_length: int,
        count: int,
        fields: Mapping[str, FieldTemplate],
    ) -> None:
        self._data = memoryview(data)
        self._block_length = block_length
        self._count = count
        self._fields = fields

    def __len__(self) -> int:
        return self._count

    def entry(self, i: int) -> View:
        """A view over the i-th entry."""
        if not 0 <= i < self._count:
            raise IndexError(f"sbe: group entry {i} out of range [0, {self._count})")
        start = GROUP_HEADER_SIZE + i * self._block_length
        return View(b"", self._data[start : start + self._block_length], self._fields)

    def __iter__(self) -> Iterator[View]:
        return (self.entry(i) for i in range(self._count))