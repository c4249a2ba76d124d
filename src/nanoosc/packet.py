"""OSC packets: messages, bundles, and their binary encoding."""

from collections.abc import Iterator
from typing import Any

from .buffer import ByteBuffer, is_aligned
from .errors import ParseError
from .timetag import IMMEDIATELY, from_raw, to_raw
from .values import (
    DEFAULT_OPTIONS,
    CodecOptions,
    decode_arguments,
    decode_string,
    encode_arguments,
    encode_string,
)

BUNDLE_PREFIX = b"#bundle\x00"

# Deepest bundle nesting accepted by decode()
MAX_BUNDLE_DEPTH = 128


def format_datagram(datagram: bytes | bytearray) -> str:
    """Render a datagram as a hex dump, 16 bytes per line."""
    data = bytes(datagram)
    lines = [f"size {len(data)}"]
    for index in range(0, len(data), 16):
        row = data[index : index + 16]
        words = "  ".join(row[i : i + 4].hex(" ") for i in range(0, len(row), 4))
        text = "".join(chr(byte) if 31 < byte < 127 else "." for byte in row)
        lines.append(f"{index: >4}   {words: <53}|{text}|")
    return "\n".join(lines)


class Packet:
    """Common base of :class:`Message` and :class:`Bundle`.

    A packet is a sequence of items (message arguments or bundle
    elements) that can be encoded to an OSC datagram. Use :func:`decode`
    to build a packet from a datagram.
    """

    is_bundle = False
    is_message = False

    @property
    def _items(self) -> list[Any]:
        raise NotImplementedError

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Any:
        return self._items[index]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __str__(self) -> str:
        return format_datagram(self.encode())

    def append(self, item: Any) -> "Packet":
        self._items.append(item)
        return self

    def each_message(self) -> Iterator["Message"]:
        """Yield every message reachable from this packet, depth first."""
        raise NotImplementedError

    def encode(self, options: CodecOptions = DEFAULT_OPTIONS) -> bytes:
        """Encode this packet to an OSC datagram."""
        buf = ByteBuffer()
        self.encode_on(buf, options)
        return buf.getvalue()

    def encode_on(
        self, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
    ) -> None:
        raise NotImplementedError

    def to_list(self) -> list[Any]:
        raise NotImplementedError


class Message(Packet):
    """An OSC message: an address and a list of typed arguments.

    Args:
        address: OSC address (e.g. ``"/synth/freq"``). It is not checked
            against the address pattern syntax.
        arguments: ``int``, ``float``, :class:`Float64`, ``str``,
            ``bytes``, ``bool`` or ``None`` values. Other objects are sent
            as their string form.
        time: OSC time of the message, or ``None`` when unset. Decoding a
            bundle sets it on the bundle's direct children.
    """

    is_message = True

    def __init__(
        self, address: str, *arguments: Any, time: float | None = None
    ) -> None:
        if not isinstance(address, str):
            raise ValueError(f"address must be str, got {address!r}")
        self.address = address
        self.arguments: list[Any] = list(arguments)
        self.time = time

    def __eq__(self, other: object) -> bool:
        # time is not part of the wire form of a message
        if type(self) is not type(other):
            return False
        assert isinstance(other, Message)
        return self.address == other.address and self.arguments == other.arguments

    def __repr__(self) -> str:
        return "{}({})".format(
            type(self).__name__,
            ", ".join(repr(_) for _ in [self.address, *self.arguments]),
        )

    @property
    def _items(self) -> list[Any]:
        return self.arguments

    @property
    def effective_time(self) -> float:
        """The message time, or :data:`IMMEDIATELY` when unset."""
        return IMMEDIATELY if self.time is None else self.time

    def each_message(self) -> Iterator["Message"]:
        yield self

    def encode_on(
        self, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
    ) -> None:
        buf.write_padded(encode_string(self.address, options))
        types, data = encode_arguments(self.arguments, options)
        buf.write_padded(types)
        buf.write_aligned(data)

    @classmethod
    def decode_from(
        cls, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
    ) -> "Message":
        address = decode_string(buf.read_cstring(), options)
        types = buf.read_cstring()
        return cls(address, *decode_arguments(types, buf, options))

    def to_list(self) -> list[Any]:
        """Convert to ``[address, arg1, arg2, ...]``."""
        return [self.address, *self.arguments]


class Bundle(Packet):
    """A time-tagged collection of messages and nested bundles.

    Args:
        time: OSC time (seconds since 1900-01-01) at which the contents
            take effect. Times that encode to zero are sent as
            "immediately".
        elements: ``Message`` and/or ``Bundle`` instances.
    """

    is_bundle = True

    def __init__(self, time: float, *elements: Packet) -> None:
        for element in elements:
            self._check_element(element)
        self.time = time
        self.elements: list[Packet] = list(elements)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return False
        assert isinstance(other, Bundle)
        return self.time == other.time and self.elements == other.elements

    def __repr__(self) -> str:
        return "{}({})".format(
            type(self).__name__,
            ", ".join(repr(_) for _ in [self.time, *self.elements]),
        )

    @staticmethod
    def _check_element(element: object) -> None:
        if not isinstance(element, Packet):
            raise ValueError(f"bundle elements must be packets, got {element!r}")

    @property
    def _items(self) -> list[Any]:
        return self.elements

    def append(self, item: Any) -> "Bundle":
        self._check_element(item)
        self.elements.append(item)
        return self

    def each_message(self) -> Iterator[Message]:
        for element in self.elements:
            yield from element.each_message()

    def flatten(self) -> list[Message]:
        """Return all messages of this bundle and its sub-bundles."""
        return list(self.each_message())

    def encode_on(
        self, buf: ByteBuffer, options: CodecOptions = DEFAULT_OPTIONS
    ) -> None:
        buf.write_aligned(BUNDLE_PREFIX)
        buf.write_i64(to_raw(self.time))
        for element in self.elements:
            datagram = element.encode(options)
            buf.write_i32(len(datagram))
            buf.write_aligned(datagram)

    @classmethod
    def decode_from(
        cls,
        buf: ByteBuffer,
        options: CodecOptions = DEFAULT_OPTIONS,
        depth: int = 0,
    ) -> "Bundle":
        buf.skip(len(BUNDLE_PREFIX))
        time = from_raw(buf.read_i64())
        elements = []
        while not buf.empty:
            length = buf.read_i32()
            if length < 0:
                raise ParseError(f"negative bundle element size {length}")
            element = _decode(buf.read_aligned(length), options, depth + 1)
            # only direct child messages borrow the bundle's time
            if isinstance(element, Message) and element.time is None:
                element.time = time
            elements.append(element)
        return cls(time, *elements)

    def to_list(self) -> list[Any]:
        """Convert to ``[time, element1, element2, ...]`` with nested lists."""
        return [self.time, *(element.to_list() for element in self.elements)]


def decode(
    data: bytes | bytearray | memoryview, options: CodecOptions = DEFAULT_OPTIONS
) -> Packet:
    """Decode an OSC datagram into a :class:`Message` or :class:`Bundle`.

    Raises:
        ParseError: The datagram is not a well-formed OSC packet, or
            its bundles nest deeper than :data:`MAX_BUNDLE_DEPTH`.
        UnderrunError: The datagram ends in the middle of a value.
    """
    return _decode(data, options, 0)


def _decode(
    data: bytes | bytearray | memoryview, options: CodecOptions, depth: int
) -> Packet:
    if depth > MAX_BUNDLE_DEPTH:
        raise ParseError(f"bundles nested deeper than {MAX_BUNDLE_DEPTH}")
    data = bytes(data)
    if not is_aligned(len(data)):
        raise ParseError(f"invalid packet size {len(data)}")
    buf = ByteBuffer(data)
    if len(data) > 15 and data.startswith(BUNDLE_PREFIX):
        return Bundle.decode_from(buf, options, depth)
    return Message.decode_from(buf, options)


def encode(packet: Packet, options: CodecOptions = DEFAULT_OPTIONS) -> bytes:
    """Encode a packet to an OSC datagram."""
    return packet.encode(options)


def each_message(packet: Packet) -> Iterator[Message]:
    """Yield every message reachable from ``packet``, depth first."""
    return packet.each_message()

