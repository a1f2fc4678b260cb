import struct

import pytest

from wirekit.sbe.codec import Codec
from wirekit.sbe.template import (
    FieldDescriptor,
    FileDescriptor,
    Kind,
    MessageDescriptor,
    SbeError,
)

FILL = MessageDescriptor(
    "Fill",
    full_name="test.v1.Order.Fill",
    fields=[
        FieldDescriptor("fill_price", 1, Kind.INT64),
        FieldDescriptor("fill_qty", 2, Kind.UINT32),
        FieldDescriptor("fill_id", 3, Kind.UINT64),
    ],
)

ORDER = MessageDescriptor(
    "Order",
    full_name="test.v1.Order",
    template_id=1,
    messages=[FILL],
    fields=[
        FieldDescriptor("order_id", 1, Kind.UINT64),
        FieldDescriptor("symbol", 2, Kind.STRING, length=8),
        FieldDescriptor("price", 3, Kind.INT64),
        FieldDescriptor("quantity", 4, Kind.UINT32),
        FieldDescriptor("side", 5, Kind.ENUM),
        FieldDescriptor("active", 6, Kind.BOOL),
        FieldDescriptor("weight", 7, Kind.DOUBLE),
        FieldDescriptor("score", 8, Kind.FLOAT),
        FieldDescriptor("fills", 9, Kind.MESSAGE, message=FILL, repeated=True),
    ],
)

SIMPLE = MessageDescriptor(
    "Simple",
    full_name="test.v1.Simple",
    template_id=2,
    fields=[
        FieldDescriptor("id", 1, Kind.UINT32),
        FieldDescriptor("value", 2, Kind.INT32),
    ],
)

INNER = MessageDescriptor(
    "Inner",
    full_name="test.v1.Inner",
    fields=[FieldDescriptor("x", 1, Kind.INT64), FieldDescriptor("y", 2, Kind.INT64)],
)

WITH_COMPOSITE = MessageDescriptor(
    "WithComposite",
    full_name="test.v1.WithComposite",
    template_id=3,
    fields=[
        FieldDescriptor("id", 1, Kind.UINT64),
        FieldDescriptor("inner", 2, Kind.MESSAGE, message=INNER),
        FieldDescriptor("code", 3, Kind.INT32),
    ],
)

WITH_NARROW = MessageDescriptor(
    "WithNarrow",
    full_name="test.v1.WithNarrow",
    template_id=4,
    fields=[
        FieldDescriptor("status", 1, Kind.UINT32, encoding="uint8"),
        FieldDescriptor("port", 2, Kind.UINT32, encoding="uint16"),
        FieldDescriptor("delta", 3, Kind.INT32, encoding="int16"),
    ],
)

WITH_BYTES = MessageDescriptor(
    "WithBytes",
    full_name="test.v1.WithBytes",
    template_id=5,
    fields=[FieldDescriptor("blob", 1, Kind.BYTES, length=4)],
)

FILE = FileDescriptor(
    "test.proto",
    messages=[ORDER, SIMPLE, WITH_COMPOSITE, INNER, WITH_NARROW, WITH_BYTES],
    schema_id=1,
    version=0,
)

CODEC = Codec(FILE)


def header(block_length, template_id):
    return struct.pack("<HHHH", block_length, template_id, 1, 0)


def order_root(order_id=0, symbol=b"", price=0, quantity=0, side=0, active=0, weight=0.0, score=0.0):
    return struct.pack("<Q8sqIBBdf", order_id, symbol, price, quantity, side, active, weight, score)


def fill(price, qty, fill_id):
    return struct.pack("<qIQ", price, qty, fill_id)


def order_bytes(root, fills=()):
    return header(42, 1) + root + struct.pack("<HH", 20, len(fills)) + b"".join(fills)


def test_simple_decode():
    data = header(8, 2) + struct.pack("<Ii", 42, -100)
    assert len(data) == 16
    assert CODEC.unmarshal(data, SIMPLE) == {"id": 42, "value": -100}


def test_order_with_fills():
    root = order_root(1001, b"AAPL", 19150, 100, 1, 1, 0.85, 3.14)
    data = order_bytes(root, [fill(19155, 25, 5001), fill(19160, 50, 5002)])
    assert len(data) == 94

    got = CODEC.unmarshal(data, ORDER)
    assert got["order_id"] == 1001
    assert got["symbol"] == "AAPL"
    assert got["price"] == 19150
    assert got["quantity"] == 100
    assert got["side"] == 1
    assert got["active"] is True
    assert got["weight"] == pytest.approx(0.85, abs=1e-10)
    assert got["score"] == pytest.approx(3.14, abs=1e-6)
    assert got["fills"] == [
        {"fill_price": 19155, "fill_qty": 25, "fill_id": 5001},
        {"fill_price": 19160, "fill_qty": 50, "fill_id": 5002},
    ]


def test_composite_decode():
    data = header(28, 3) + struct.pack("<Qqqi", 99, 100, -200, 42)
    assert len(data) == 36
    assert CODEC.unmarshal(data, WITH_COMPOSITE) == {
        "id": 99,
        "inner": {"x": 100, "y": -200},
        "code": 42,
    }


def test_string_fills_whole_width():
    data = order_bytes(order_root(symbol=b"LONGERTH"))
    assert CODEC.unmarshal(data, ORDER)["symbol"] == "LONGERTH"


def test_bytes_keep_padding():
    data = header(4, 5) + b"\x01\x02\x00\x00"
    assert CODEC.unmarshal(data, WITH_BYTES) == {"blob": b"\x01\x02\x00\x00"}


def test_empty_group():
    data = order_bytes(order_root(order_id=1))
    assert len(data) == 54
    got = CODEC.unmarshal(data, ORDER)
    assert got["order_id"] == 1
    assert got["fills"] == []


def test_narrow_encoding():
    data = header(5, 4) + struct.pack("<BHh", 200, 8080, -1234)
    assert len(data) == 13
    assert CODEC.unmarshal(data, WITH_NARROW) == {"status": 200, "port": 8080, "delta": -1234}


def test_zero_values():
    data = header(8, 2) + bytes(8)
    assert CODEC.unmarshal(data, SIMPLE) == {"id": 0, "value": 0}


def test_negative_int():
    data = order_bytes(order_root(price=-99999))
    assert CODEC.unmarshal(data, ORDER)["price"] == -99999


def test_any_nonzero_bool_byte_is_true():
    data = order_bytes(order_root(active=2))
    assert CODEC.unmarshal(data, ORDER)["active"] is True


def test_wider_wire_block_is_accepted():
    data = header(12, 2) + struct.pack("<IiI", 7, -7, 0xDEADBEEF)
    assert CODEC.unmarshal(data, SIMPLE) == {"id": 7, "value": -7}


def test_short_header_rejected():
    with pytest.raises(SbeError, match="too short for header"):
        CODEC.unmarshal(b"\x08\x00\x02", SIMPLE)


def test_template_mismatch_rejected():
    data = header(8, 3) + bytes(8)
    with pytest.raises(SbeError, match="template ID mismatch: got 3, want 2"):
        CODEC.unmarshal(data, SIMPLE)


def test_narrow_wire_block_rejected():
    data = header(4, 2) + bytes(8)
    with pytest.raises(SbeError, match="wire blockLength 4 < schema blockLength 8"):
        CODEC.unmarshal(data, SIMPLE)


def test_truncated_root_block_rejected():
    data = header(8, 2) + bytes(4)
    with pytest.raises(SbeError, match="need 16, have 12"):
        CODEC.unmarshal(data, SIMPLE)


def test_missing_group_header_rejected():
    data = header(42, 1) + order_root()
    with pytest.raises(SbeError, match="group header"):
        CODEC.unmarshal(data, ORDER)


def test_group_entry_count_beyond_data_rejected():
    data = header(42, 1) + order_root() + struct.pack("<HH", 20, 5) + fill(1, 1, 1)
    with pytest.raises(SbeError, match="declares 5 entries"):
        CODEC.unmarshal(data, ORDER)


def test_group_narrow_block_rejected():
    data = header(42, 1) + order_root() + struct.pack("<HH", 10, 1) + bytes(10)
    with pytest.raises(SbeError, match="group fills wire blockLength 10 < schema blockLength 20"):
        CODEC.unmarshal(data, ORDER)


def test_unregistered_message_rejected():
    with pytest.raises(SbeError, match="no template registered for test.v1.Inner"):
        CODEC.unmarshal(header(16, 0) + bytes(16), INNER)


def test_file_without_schema_id_rejected():
    with pytest.raises(SbeError, match="missing \\(sbe.schema_id\\)"):
        Codec(FileDescriptor("bare.proto", messages=[SIMPLE]))


def test_unsupported_layout_rejected_at_construction():
    bad = MessageDescriptor(
        "Bad",
        full_name="test.v1.Bad",
        template_id=9,
        fields=[FieldDescriptor("tags", 1, Kind.STRING, repeated=True)],
    )
    with pytest.raises(SbeError, match="repeated scalar field"):
        Codec(FileDescriptor("bad.proto", messages=[bad], schema_id=1))


def test_nested_templated_message_is_registered():
    leaf = MessageDescriptor(
        "Leaf",
        full_name="test.v1.Outer.Leaf",
        template_id=7,
        fields=[FieldDescriptor("n", 1, Kind.UINT32)],
    )
    outer = MessageDescriptor("Outer", full_name="test.v1.Outer", messages=[leaf])
    codec = Codec(FileDescriptor("nested.proto", messages=[outer], schema_id=3))
    data = header(4, 7) + struct.pack("<I", 77)
    assert codec.unmarshal(data, leaf) == {"n": 77}
    with pytest.raises(SbeError, match="no template registered for test.v1.Outer"):
        codec.unmarshal(data, outer)


def test_view_scalars():
    data = order_bytes(order_root(1001, b"AAPL", 19150, 100, 1, 1, 0.85, 3.14))
    v = CODEC.view(data)
    assert v.uint_field("order_id") == 1001
    assert v.string_field("symbol") == "AAPL"
    assert v.int_field("price") == 19150
    assert v.uint_field("quantity") == 100
    assert v.enum_field("side") == 1
    assert v.bool_field("active") is True
    assert v.float_field("weight") == pytest.approx(0.85, abs=1e-10)
    assert v.float_field("score") == pytest.approx(3.14, abs=1e-6)


def test_view_group():
    data = order_bytes(order_root(order_id=1), [fill(100, 10, 7), fill(200, 20, 8)])
    fills = CODEC.view(data).group("fills")
    assert len(fills) == 2
    e0 = fills.entry(0)
    assert (e0.int_field("fill_price"), e0.uint_field("fill_qty"), e0.uint_field("fill_id")) == (100, 10, 7)
    e1 = fills.entry(1)
    assert (e1.int_field("fill_price"), e1.uint_field("fill_qty"), e1.uint_field("fill_id")) == (200, 20, 8)


def test_view_composite():
    data = header(28, 3) + struct.pack("<Qqqi", 99, 100, -200, 42)
    v = CODEC.view(data)
    assert v.uint_field("id") == 99
    assert v.int_field("code") == 42
    inner = v.composite("inner")
    assert inner.int_field("x") == 100
    assert inner.int_field("y") == -200


def test_view_empty_group():
    data = order_bytes(order_root(order_id=1))
    assert len(CODEC.view(data).group("fills")) == 0


def test_view_unknown_template_rejected():
    with pytest.raises(SbeError, match="unknown template ID 99"):
        CODEC.view(header(8, 99) + bytes(8))


def test_view_narrow_block_rejected():
    with pytest.raises(SbeError, match="wire blockLength 2 < schema blockLength 8"):
        CODEC.view(header(2, 2) + bytes(8))


def test_view_truncated_rejected():
    with pytest.raises(SbeError, match="root block"):
        CODEC.view(header(8, 2) + bytes(3))
    with pytest.raises(SbeError, match="header"):
        CODEC.view(b"\x00")