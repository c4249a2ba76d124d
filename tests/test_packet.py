"""OSC message/bundle encode and decode tests."""

import array
import struct

import pytest

from nanoosc.errors import OscError, ParseError, UnderrunError
from nanoosc.packet import (
    BUNDLE_PREFIX,
    MAX_BUNDLE_DEPTH,
    Bundle,
    Message,
    decode,
    each_message,
    encode,
    format_datagram,
)
from nanoosc.timetag import IMMEDIATELY, to_raw
from nanoosc.values import CodecOptions, Float64

T = 3913056000.5
U = 3913056012.25


def nested_bundles(levels: int) -> bytes:
    datagram = Message("/x").encode()
    for _ in range(levels):
        datagram = BUNDLE_PREFIX + struct.pack(">Qi", 1, len(datagram)) + datagram
    return datagram


class TestMessage:
    def test_encoding(self) -> None:
        datagram = Message("/foo", 1, 2.5, "bar").encode()
        assert datagram == (
            b"/foo\x00\x00\x00\x00"
            b",ifs\x00\x00\x00\x00"
            b"\x00\x00\x00\x01"
            b"\x40\x20\x00\x00"
            b"bar\x00"
        )

    def test_round_trip(self) -> None:
        msg = Message("/foo", 1, 2.5, "bar")
        decoded = decode(encode(msg))
        assert isinstance(decoded, Message)
        assert decoded.address == "/foo"
        assert decoded.arguments == [1, 2.5, "bar"]
        assert decoded.time is None

    def test_no_arguments(self) -> None:
        datagram = Message("/quit").encode()
        assert datagram == b"/quit\x00\x00\x00,\x00\x00\x00"
        assert decode(datagram) == Message("/quit")

    def test_mixed_types(self) -> None:
        blob = b"\xff" * 17
        msg = Message("/fooBar", -12, 3.5, "sexihexi", blob, Float64(0.1), True)
        decoded = decode(msg.encode())
        assert decoded.arguments == [-12, 3.5, "sexihexi", blob, 0.1, 1]
        assert isinstance(decoded[4], Float64)

    def test_memoryview_blob_keeps_all_bytes(self) -> None:
        view = memoryview(array.array("h", [1, 2, 3, 4]))
        decoded = decode(Message("/a", view).encode())
        assert decoded.arguments == [view.tobytes()]
        assert len(decoded[0]) == 8

    def test_none_dropped(self) -> None:
        decoded = decode(Message("/test", None, 42).encode())
        assert decoded.arguments == [42]

    def test_append(self) -> None:
        msg = Message("/test").append(1).append("two")
        assert len(msg) == 2
        assert msg[1] == "two"
        assert list(msg) == [1, "two"]

    def test_equality_ignores_time(self) -> None:
        a = Message("/test", 1, 2)
        b = Message("/test", 1, 2, time=T)
        c = Message("/test", 1, 3)
        assert a == b
        assert a != c
        assert a != Bundle(T, a)

    def test_effective_time(self) -> None:
        assert Message("/a").effective_time == IMMEDIATELY
        assert Message("/a", time=T).effective_time == T

    def test_repr(self) -> None:
        assert repr(Message("/test", 42)) == "Message('/test', 42)"

    def test_str_is_hex_dump(self) -> None:
        text = str(Message("/test", 42))
        assert text.splitlines()[0] == "size 16"
        assert "|/test...,i.....*|" in text

    def test_to_list(self) -> None:
        assert Message("/a", 1, "b").to_list() == ["/a", 1, "b"]

    def test_invalid_address(self) -> None:
        with pytest.raises(ValueError):
            Message(3.14, 1)  # type: ignore[arg-type]

    def test_is_message(self) -> None:
        msg = Message("/a")
        assert msg.is_message
        assert not msg.is_bundle

    def test_double_precision_option(self) -> None:
        options = CodecOptions(double_precision=True)
        datagram = Message("/a", 0.1).encode(options)
        assert datagram[4:8] == b",d\x00\x00"
        assert decode(datagram, options).arguments == [0.1]


class TestBundle:
    def test_encoding(self) -> None:
        datagram = Bundle(T, Message("/a")).encode()
        assert datagram[:8] == BUNDLE_PREFIX
        assert struct.unpack(">Q", datagram[8:16])[0] == to_raw(T)
        assert struct.unpack(">i", datagram[16:20])[0] == 8
        assert datagram[20:] == b"/a\x00\x00,\x00\x00\x00"

    def test_time_propagates_to_messages(self) -> None:
        bundle = Bundle(T, Message("/a"), Message("/b", 42))
        decoded = decode(bundle.encode())
        assert isinstance(decoded, Bundle)
        assert decoded.time == T
        messages = list(each_message(decoded))
        assert [m.address for m in messages] == ["/a", "/b"]
        assert messages[1].arguments == [42]
        assert all(m.time == T for m in messages)

    def test_nested_bundle_keeps_inner_time(self) -> None:
        bundle = Bundle(T, Bundle(U, Message("/x", 1)))
        decoded = decode(bundle.encode())
        messages = decoded.flatten()
        assert len(messages) == 1
        assert messages[0].address == "/x"
        assert messages[0].time == U
        assert decoded[0].time == U

    def test_mixed_nesting(self) -> None:
        bundle = Bundle(
            T,
            Message("/hell/yeah", "what tha? time slice exceeded.", 42),
            Message("/Whooha", 7, "in", "full", "f", "x"),
            Bundle(U, Message("/fooBar", -12, 3.5, "sexihexi")),
        )
        decoded = decode(bundle.encode())
        assert decoded == bundle
        times = [(m.address, m.time) for m in decoded.each_message()]
        assert times == [("/hell/yeah", T), ("/Whooha", T), ("/fooBar", U)]

    def test_round_trip_equality(self) -> None:
        bundle = Bundle(T, Message("/a", 1), Bundle(U))
        assert decode(bundle.encode()) == bundle

    def test_empty_bundle(self) -> None:
        datagram = Bundle(T).encode()
        assert len(datagram) == 16
        decoded = decode(datagram)
        assert isinstance(decoded, Bundle)
        assert len(decoded) == 0

    def test_zero_time_is_immediately(self) -> None:
        datagram = Bundle(0.0, Message("/a")).encode()
        assert datagram[8:16] == b"\x00" * 7 + b"\x01"
        assert decode(datagram).time == IMMEDIATELY

    def test_message_time_is_not_encoded(self) -> None:
        msg = Message("/a", time=U)
        decoded = decode(Bundle(T, msg).encode())
        # time is not on the wire, so the decoded message borrows T
        assert decoded[0].time == T

    def test_each_message_is_restartable(self) -> None:
        bundle = Bundle(T, Message("/a"), Bundle(U, Message("/b")), Message("/c"))
        first = [m.address for m in bundle.each_message()]
        second = [m.address for m in bundle.each_message()]
        assert first == second == ["/a", "/b", "/c"]

    def test_each_message_of_message(self) -> None:
        msg = Message("/a")
        assert list(each_message(msg)) == [msg]

    def test_invalid_contents(self) -> None:
        with pytest.raises(ValueError):
            Bundle(T, "not a message")  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            Bundle(T).append(42)

    def test_repr(self) -> None:
        assert repr(Bundle(1.0, Message("/a"))) == "Bundle(1.0, Message('/a'))"

    def test_to_list(self) -> None:
        bundle = Bundle(2.0, Message("/a", 1), Bundle(3.0, Message("/b")))
        assert bundle.to_list() == [2.0, ["/a", 1], [3.0, ["/b"]]]

    def test_is_bundle(self) -> None:
        assert Bundle(T).is_bundle
        assert not Bundle(T).is_message

    def test_deep_nesting_within_limit(self) -> None:
        decoded = decode(nested_bundles(MAX_BUNDLE_DEPTH))
        messages = decoded.flatten()
        assert [m.address for m in messages] == ["/x"]
        assert messages[0].time == IMMEDIATELY


class TestAlignment:
    @pytest.mark.parametrize(
        "packet",
        [
            Message("/"),
            Message("/abc"),
            Message("/a", "abcd", b"xyz", 1.5),
            Bundle(T),
            Bundle(T, Message("/a", b""), Bundle(U, Message("/bb", "c"))),
        ],
    )
    def test_length_is_positive_multiple_of_four(self, packet) -> None:
        datagram = packet.encode()
        assert len(datagram) > 0
        assert len(datagram) % 4 == 0


class TestMalformed:
    def test_empty_datagram(self) -> None:
        with pytest.raises(ParseError):
            decode(b"")

    def test_unaligned_datagram(self) -> None:
        with pytest.raises(ParseError):
            decode(b"/foo\x00\x00")

    def test_truncated_by_one_byte(self) -> None:
        datagram = Message("/foo", 1, 2.5, "bar").encode()
        with pytest.raises(ParseError):
            decode(datagram[:-1])

    def test_every_truncation_fails(self) -> None:
        datagram = Message("/foo", 1, 2.5, "bar").encode()
        for end in range(1, len(datagram)):
            with pytest.raises((UnderrunError, ParseError)):
                decode(datagram[:end])

    def test_truncated_bundle_element(self) -> None:
        datagram = Bundle(T, Message("/a"), Message("/b", 42)).encode()
        with pytest.raises(UnderrunError):
            decode(datagram[:-4])

    def test_unknown_type_tag(self) -> None:
        with pytest.raises(ParseError):
            decode(b"/foo\x00\x00\x00\x00,z\x00\x00\x00\x00\x00\x00")

    def test_missing_type_tag_comma(self) -> None:
        with pytest.raises(ParseError):
            decode(b"/foo\x00\x00\x00\x00ifs\x00")

    def test_unterminated_address(self) -> None:
        with pytest.raises(UnderrunError):
            decode(b"/foo")

    def test_undecodable_address(self) -> None:
        with pytest.raises(ParseError):
            decode(b"\xff\xfe\x00\x00,\x00\x00\x00")

    def test_unaligned_bundle_element(self) -> None:
        datagram = BUNDLE_PREFIX + struct.pack(">Qi", 1, 5) + b"/a\x00\x00,\x00\x00\x00"
        with pytest.raises(ParseError):
            decode(datagram)

    def test_negative_bundle_element_size(self) -> None:
        datagram = BUNDLE_PREFIX + struct.pack(">Qi", 1, -4) + b"/a\x00\x00"
        with pytest.raises(ParseError):
            decode(datagram)

    def test_nesting_past_limit(self) -> None:
        with pytest.raises(ParseError):
            decode(nested_bundles(MAX_BUNDLE_DEPTH + 1))

    def test_very_deep_nesting_is_osc_error(self) -> None:
        datagram = nested_bundles(600)
        assert len(datagram) < 65507
        with pytest.raises(OscError):
            decode(datagram)

    def test_short_bundle_prefix_is_a_message(self) -> None:
        # fewer than 16 bytes never decode as a bundle
        with pytest.raises((UnderrunError, ParseError)):
            decode(BUNDLE_PREFIX + b"\x00\x00\x00\x00")


class TestFormatDatagram:
    def test_multiline(self) -> None:
        text = format_datagram(bytes(range(20)))
        lines = text.splitlines()
        assert lines[0] == "size 20"
        assert lines[1].startswith("   0   00 01 02 03  04 05 06 07")
        assert lines[2].startswith("  16   10 11 12 13")
        assert lines[2].endswith("|....|")
