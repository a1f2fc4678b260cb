# wirekit

Building blocks for compact, cross-system messaging:

- **`wirekit.envelope`**: a uniform API response envelope that keeps
  transport errors apart from application errors. Application errors carry
  machine-readable codes with positional arguments, so clients can localize
  them, and they can hold per-field validation details and metadata.
- **`wirekit.sbe`**: Simple Binary Encoding (SBE) support:
  - `template` lays out messages from annotated message descriptors.
  - `codec` decodes SBE payloads and opens views over them.
  - `view` reads fields straight from the buffer.
  - `xmlschema` and `xmltoproto` parse SBE XML schemas and turn them into
    annotated `.proto` source.

The package has no runtime dependencies.

## Installation

```
pip install wirekit
```

To run the tests, install the `test` extra and call pytest:

```
pip install "wirekit[test]"
pytest
```

## Envelopes

```python
from wirekit.envelope import Envelope, err, new_app_error, ok, transport_err

success = ok(200, b"hello")
assert success.is_ok()

failure = err(404, "user.not_found", "user %s does not exist", "alice")
assert failure.is_app_error()
assert failure.error_code() == "user.not_found"
assert failure.error.args == ["alice"]

down = transport_err("connection refused")
assert down.is_transport_error()
```

`Envelope`, `AppError` and `FieldError` are dataclasses. Field-level
validation errors and metadata are added by chaining `with_field` and
`with_meta`, which change the error in place and return it:

```python
app_error = (
    new_app_error("validation.failed", "request was invalid")
    .with_field("email", "format.invalid", "must be a valid email")
    .with_field("age", "value.out_of_range", "must be between %d and %d", "0", "120")
    .with_meta("request_id", "req-123")
)

response = Envelope(status=400, error=app_error)
email_error = response.field_errors()["email"]
print(email_error.code)   # format.invalid
```

`field_errors()` returns an empty dict when there is no application error.
If two details name the same field, the later one wins.

## SBE

### Descriptors and layout

Messages are described with the dataclasses `FileDescriptor`,
`MessageDescriptor` and `FieldDescriptor` from `wirekit.sbe.template`,
whose field kinds come from the `Kind` enum. They carry the SBE annotations:

- A file has a `schema_id` (required) and a `version`.
- A message encoded at the top level has a `template_id`; nested messages
  listed in `messages` are registered too when they have one.
- A string or bytes field needs a fixed `length`.
- A field may give an explicit `encoding` such as `"uint8"` or `"int16"`.

Fields are laid out in field-number order, little-endian. Integers,
booleans, enums (`uint8` by default) and floats become SBE primitives.
Nested messages are inlined as composites. Repeated messages become
repeating groups, which follow the root block. Map fields, oneofs,
repeated scalars and unknown encodings are rejected with `SbeError`.
`build_template` returns the resulting `MessageTemplate`.

### Decoding

```python
import struct

from wirekit.sbe.codec import Codec
from wirekit.sbe.template import FieldDescriptor, FileDescriptor, Kind, MessageDescriptor

simple = MessageDescriptor(
    name="Simple",
    full_name="test.v1.Simple",
    template_id=2,
    fields=[
        FieldDescriptor("id", 1, Kind.UINT32),
        FieldDescriptor("value", 2, Kind.INT32),
    ],
)
codec = Codec(FileDescriptor("test.proto", messages=[simple], schema_id=1, version=0))

data = struct.pack("<HHHH", 8, 2, 1, 0) + struct.pack("<Ii", 42, -100)
print(codec.unmarshal(data, simple))   # {'id': 42, 'value': -100}
```

`Codec.unmarshal(data, desc)` returns a plain dict keyed by field name.
Composites become nested dicts and repeating groups become lists of dicts.
Strings have their trailing NUL padding removed; bytes are returned as is.
It raises `SbeError` on a short header, a template id mismatch, a block
length smaller than the schema's, truncated data, or a group that declares
more entries than the data holds. A wider wire block length is accepted.

### Views

`Codec.view(data)` picks the template from the header's template id and
returns a `View` that reads fields straight from the buffer:

- `int_field`, `uint_field`, `float_field`, `bool_field`, `enum_field`,
  `string_field` and `bytes_field` read scalar fields.
- `composite(name)` returns a `View` over a nested composite.
- `group(name)` returns a `GroupView`, which supports `len()`,
  `entry(i)` and iteration over its entries.

Views are meant for trusted buffers whose schema you own. An unknown field
or group name raises `KeyError`, and reading a field as the wrong category
raises `TypeError`; the buffer contents beyond the root block are not
checked. Use `Codec.unmarshal` for untrusted input.

### From SBE XML to proto

```python
from wirekit.sbe.xmltoproto import xml_to_proto

with open("schema.xml", "rb") as fh:
    proto_source = xml_to_proto(fh.read())
```

`xml_to_proto` returns `.proto` source as bytes, using SBE annotations
(`sbe.schema_id`, `sbe.version`, `sbe.template_id`, `sbe.length`,
`sbe.encoding`):

- Enums, with value names prefixed by the enum name in SCREAMING_SNAKE.
- Composites as messages. The `messageHeader` and `groupSizeEncoding`
  composites are skipped.
- Messages. Each repeating group becomes a nested message, named in
  singular PascalCase, plus a repeated field.

`wirekit.sbe.xmlschema.parse_xml_schema` returns the parsed `XMLSchema` on
its own and raises `SchemaParseError` on malformed XML or invalid numeric
attributes. The same module holds the naming helpers used by the converter
(`camel_to_snake`, `snake_to_camel`, `camel_to_screaming_snake`,
`screaming_snake_to_pascal`, `strip_enum_prefix`, `singular_pascal`).

## What the package does not do

- It decodes SBE but does not encode it: there is no way to turn a message
  into SBE bytes.
- It does not read or write framed streams of SBE messages; each call works
  on one complete message in memory.
- Envelopes are plain data objects; the package has no binary or text
  serialization for them.
- There is no command-line program.