"""Type-tag dispatch for OSC argument values.

Each supported wire type is one entry in a single table keyed by its
type-tag byte, holding the reader and writer for that type:

===  ==========  ===========================================
tag  Python      wire data
===  ==========  ===========================================
i    int         32-bit signed integer
f    float       IEEE-754 binary32
s    str         NUL-terminated string, zero padded
b    bytes       32-bit byte count, bytes, zero padded
d    Float64     IEEE-754 binary64
===  ==========  ===========================================

``bool`` values are written as ``i`` (0 or 1) and ``None`` arguments are
skipped entirely. Any other object is written as the ``s`` tag of its
``str()``.
"""

import codecs
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, NamedTuple, Union

from .buffer import ByteBuffer
from .errors import ParseError

TYPE_TAG_START = ord(",")
TYPE_INT32 = ord("i")
TYPE_FLOAT32 = ord("f")
TYPE_STRING = ord("s")
TYPE_BLOB = ord("b")
TYPE_FLOAT64 = ord("d")


class Float64(float):
    """A float that is encoded with the ``d`` (64-bit) type tag."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({float(self)!r})"


OscValue = Union[int, float, str, bytes, Float64]


@dataclass(frozen=True)
class CodecOptions:
    """Encoding and decoding options.

    Args:
        encoding: Text codec for addresses, type tags and string arguments.
        double_precision: Write plain ``float`` arguments with the ``d``
            tag instead of ``f``.
    """

    encoding: str = "utf-8"
    double_precision: bool = False

    def __post_init__(self) -> None:
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"unknown text encoding {self.encoding!r}") from None


DEFAULT_OPTIONS = CodecOptions()


def encode_string(value: str, options: CodecOptions = DEFAULT_OPTIONS) -> bytes:
    if "\x00" in value:
        raise ValueError(f"string contains a NUL character: {value!r}")
    return value.encode(options.encoding)


def decode_string(data: bytes, options: CodecOptions = DEFAULT_OPTIONS) -> str:
    try:
        return data.decode(options.encoding)
    except UnicodeDecodeError as exc:
        raise ParseError(f"undecodable string {data!r}") from exc


class _TypeCodec(NamedTuple):
    read: Callable[[ByteBuffer, CodecOptions], Any]
    write: Callable[[ByteBuffer, Any, CodecOptions], Any]


_CODECS: dict[int, _TypeCodec] = {
    TYPE_INT32: _TypeCodec(
        lambda buf, options: buf.read_i32(),
        lambda buf, value, options: buf.write_i32(int(value)),
    ),
    TYPE_FLOAT32: _TypeCodec(
        lambda buf, options: buf.read_f32(),
        lambda buf, value, options: buf.write_f32(value),
    ),
    TYPE_STRING: _TypeCodec(
        lambda buf, options: decode_string(buf.read_cstring(), options),
        lambda buf, value, options: buf.write_padded(encode_string(value, options)),
    ),
    TYPE_BLOB: _TypeCodec(
        lambda buf, options: buf.read_blob(),
        lambda buf, value, options: buf.write_blob(value),
    ),
    TYPE_FLOAT64: _TypeCodec(
        lambda buf, options: Float64(buf.read_f64()),
        lambda buf, value, options: buf.write_f64(value),
    ),
}


def type_tag(value: object, options: CodecOptions = DEFAULT_OPTIONS) -> int | None:
    """Return the type-tag byte ``value`` is encoded with.

    Returns ``None`` for ``None``, which produces neither a tag nor data.
    """
    if value is None:
        return None
    # bool is an int subclass, so it lands on 'i' here
    if isinstance(value, int):
        return TYPE_INT32
    if isinstance(value, Float64):
        return TYPE_FLOAT64
    if isinstance(value, float):
        return TYPE_FLOAT64 if options.double_precision else TYPE_FLOAT32
    if isinstance(value, str):
        return TYPE_STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return TYPE_BLOB
    return TYPE_STRING


def encode_value(
    value: object,
    types: bytearray,
    buf: ByteBuffer,
    options: CodecOptions = DEFAULT_OPTIONS,
) -> None:
    """Append the tag of ``value`` to ``types`` and its data to ``buf``."""
    tag = type_tag(value, options)
    if tag is None:
        return
    if tag == TYPE_STRING and not isinstance(value, str):
        value = str(value)
    types.append(tag)
    _CODECS[tag].write(buf, value, options)


def decode_value(
    tag: int, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
) -> OscValue:
    """Read one value of type ``tag`` from ``buf``."""
    codec = _CODECS.get(tag)
    if codec is None:
        raise ParseError(f"invalid type tag {chr(tag)!r}")
    return codec.read(buf, options)  # type: ignore[no-any-return]


def encode_arguments(
    arguments: Iterable[object], options: CodecOptions = DEFAULT_OPTIONS
) -> tuple[bytes, bytes]:
    """Encode ``arguments`` to a ``,``-prefixed type-tag string and data."""
    types = bytearray([TYPE_TAG_START])
    buf = ByteBuffer()
    for argument in arguments:
        encode_value(argument, types, buf, options)
    return bytes(types), buf.getvalue()


def decode_arguments(
    types: bytes, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
) -> list[OscValue]:
    """Decode one value from ``buf`` per tag in the type-tag string."""
    if types[:1] != b",":
        raise ParseError(f"invalid type tag string {types!r}")
    return [decode_value(tag, buf, options) for tag in types[1:]]
