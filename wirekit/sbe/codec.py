"""Decoding of SBE messages laid out from annotated message descriptors.

Decoded messages are plain dictionaries keyed by field name. Scalars
become ``int``, ``float``, ``bool``, ``str`` or ``bytes``. Composites
become nested dictionaries and repeating groups become lists of
dictionaries.
"""

from __future__ import annotations

import math
import struct
from typing import Any, Iterable

from wirekit.sbe.template import (
    ENC_CHAR,
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
    FileDescriptor,
    GroupTemplate,
    Kind,
    MessageDescriptor,
    MessageTemplate,
    SbeError,
    build_template,
)
from wirekit.sbe.view import GROUP_HEADER_SIZE, HEADER_SIZE, View

__all__ = ["Codec"]

_Buffer = "bytes | bytearray | memoryview"

_HEADER_PREFIX = struct.Struct("<HH")
_GROUP_HEADER = struct.Struct("<HH")

_SIGNED = {ENC_INT8: "<b", ENC_INT16: "<h", ENC_INT32: "<i", ENC_INT64: "<q"}
_UNSIGNED = {ENC_UINT8: "<B", ENC_UINT16: "<H", ENC_UINT32: "<I", ENC_UINT64: "<Q"}
_FLOATS = {ENC_FLOAT: "<f", ENC_DOUBLE: "<d"}

_INT32_KINDS = frozenset({Kind.INT32, Kind.SINT32, Kind.SFIXED32})
_UINT32_KINDS = frozenset({Kind.UINT32, Kind.FIXED32})


def _u16(value: int) -> int:
    return value & 0xFFFF


def _as_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _as_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _signed_value(ft: FieldTemplate, value: int) -> int:
    if ft.fd.kind in _INT32_KINDS:
        return _as_int32(value)
    return value


def _unsigned_value(ft: FieldTemplate, value: int) -> int | bool:
    kind = ft.fd.kind
    if kind is Kind.BOOL:
        return value != 0
    if kind in _UINT32_KINDS:
        return value & 0xFFFFFFFF
    return value


def _float_value(ft: FieldTemplate, value: float) -> float:
    if ft.fd.kind is Kind.FLOAT:
        return _as_float32(value)
    return value


def _read_scalar(data: Any, off: int, ft: FieldTemplate) -> Any:
    enc = ft.encoding
    if enc in _SIGNED:
        return _signed_value(ft, struct.unpack_from(_SIGNED[enc], data, off)[0])
    if enc in _UNSIGNED:
        return _unsigned_value(ft, struct.unpack_from(_UNSIGNED[enc], data, off)[0])
    if enc in _FLOATS:
        return _float_value(ft, struct.unpack_from(_FLOATS[enc], data, off)[0])
    if enc == ENC_CHAR:
        raw = bytes(data[off : off + ft.size])
        if ft.fd.kind is Kind.BYTES:
            return raw
        return raw.rstrip(b"\x00").decode("utf-8", "surrogateescape")
    raise SbeError(f"sbe: field {ft.name} has unknown encoding {enc!r}")


def _read_fields(data: Any, base: int, fields: Iterable[FieldTemplate]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for ft in fields:
        if ft.fd.kind is Kind.MESSAGE:
            out[ft.name] = _read_fields(data, base + ft.offset, ft.composite)
        else:
            out[ft.name] = _read_scalar(data, base + ft.offset, ft)
    return out


def _read_group(data: Any, pos: int, gt: GroupTemplate) -> tuple[list[dict[str, Any]], int]:
    if len(data) - pos < GROUP_HEADER_SIZE:
        raise SbeError("sbe: data too short for group header")
    block_length, count = _GROUP_HEADER.unpack_from(data, pos)

    # A wider wire block is schema evolution; a narrower one would underrun reads.
    if block_length < gt.block_length:
        raise SbeError(
            f"sbe: group {gt.name} wire blockLength {block_length} "
            f"< schema blockLength {gt.block_length}"
        )
    remaining = len(data) - pos - GROUP_HEADER_SIZE
    if block_length > 0 and count > remaining // block_length:
        raise SbeError(
            f"sbe: group {gt.name} declares {count} entries × {block_length} bytes, "
            f"{remaining} bytes remaining"
        )

    start = pos + GROUP_HEADER_SIZE
    entries = [
        _read_fields(data, start + i * block_length, gt.fields) for i in range(count)
    ]
    return entries, GROUP_HEADER_SIZE + count * block_length


def _decode(data: Any, tmpl: MessageTemplate) -> dict[str, Any]:
    if len(data) < HEADER_SIZE:
        raise SbeError(f"sbe: data too short for header: {len(data)} bytes")
    block_length, template_id = _HEADER_PREFIX.unpack_from(data, 0)
    if template_id != tmpl.template_id:
        raise SbeError(
            f"sbe: template ID mismatch: got {template_id}, want {tmpl.template_id}"
        )
    if block_length < tmpl.block_length:
        raise SbeError(
            f"sbe: wire blockLength {block_length} < schema blockLength "
            f"{tmpl.block_length} for template {tmpl.template_id}"
        )
    end = HEADER_SIZE + block_length
    if len(data) < end:
        raise SbeError(f"sbe: data too short for root block: need {end}, have {len(data)}")

    message = _read_fields(data, HEADER_SIZE, tmpl.fields)
    pos = end
    for gt in tmpl.groups:
        entries, consumed = _read_group(data, pos, gt)
        message[gt.name] = entries
        pos += consumed
    return message


class Codec:
    """Decodes SBE binary for every templated message of the given files.

    Each file needs a ``schema_id``; every message (nested ones included)
    that carries a ``template_id`` is registered. A codec is read-only
    once built.
    """

    def __init__(self, *files: FileDescriptor) -> None:
        self._by_name: dict[str, MessageTemplate] = {}
        self._by_id: dict[int, MessageTemplate] = {}
        for fd in files:
            if fd.schema_id is None:
                raise SbeError(f"sbe: file {fd.path} missing (sbe.schema_id) option")
            version = fd.version or 0
            for md in fd.messages:
                self._register(md, _u16(fd.schema_id), _u16(version))

    def _register(self, md: MessageDescriptor, schema_id: int, version: int) -> None:
        if md.template_id is not None:
            tmpl = build_template(md, schema_id, version)
            self._by_name[md.full_name] = tmpl
            self._by_id[tmpl.template_id] = tmpl
        for nested in md.messages:
            self._register(nested, schema_id, version)

    def unmarshal(self, data: bytes | bytearray | memoryview, desc: MessageDescriptor) -> dict[str, Any]:
        """Decode SBE binary as a message of type ``desc``."""
        tmpl = self._by_name.get(desc.full_name)
        if tmpl is None:
            raise SbeError(f"sbe: no template registered for {desc.full_name}")
        return _decode(data, tmpl)

    def _unmarshal_any(self, data: bytes | bytearray | memoryview) -> dict[str, Any]:
        """Decode SBE binary using the template named by its header."""
        if len(data) < HEADER_SIZE:
            raise SbeError(f"sbe: data too short for header: {len(data)} bytes")
        _, template_id = _HEADER_PREFIX.unpack_from(data, 0)
        tmpl = self._by_id.get(template_id)
        if tmpl is None:
            raise SbeError(f"sbe: unknown template ID {template_id}")
        return _decode(data, tmpl)

    def view(self, data: bytes | bytearray | memoryview) -> View:
        """A reader over SBE data; the template comes from the header."""
        if len(data) < HEADER_SIZE:
            raise SbeError("sbe: data too short for header")
        block_length, template_id = _HEADER_PREFIX.unpack_from(data, 0)
        tmpl = self._by_id.get(template_id)
        if tmpl is None:
            raise SbeError(f"sbe: unknown template ID {template_id}")
        if block_length < tmpl.block_length:
            raise SbeError(
                f"sbe: wire blockLength {block_length} < schema blockLength "
                f"{tmpl.block_length} for template {template_id}"
            )
        end = HEADER_SIZE + block_length
        if len(data) < end:
            raise SbeError("sbe: data too short for root block")
        buffer = memoryview(data)
        return View(buffer, buffer[HEADER_SIZE:end], tmpl.fields_by_name, tmpl.groups)