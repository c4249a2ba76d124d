"""nanoosc -- minimal OSC (Open Sound Control) packet codec."""

__version__ = "0.1.0"

from .buffer import ByteBuffer, aligned, alignment, is_aligned
from .dispatch import Dispatcher
from .errors import OscError, ParseError, UnderrunError
from .packet import (
    Bundle,
    Message,
    Packet,
    decode,
    each_message,
    encode,
    format_datagram,
)
from .timetag import IMMEDIATELY, from_raw, from_unix, now, to_raw, to_unix
from .values import CodecOptions, Float64

__all__ = [
    "IMMEDIATELY",
    "Bundle",
    "ByteBuffer",
    "CodecOptions",
    "Dispatcher",
    "Float64",
    "Message",
    "OscError",
    "Packet",
    "ParseError",
    "UnderrunError",
    "aligned",
    "alignment",
    "decode",
    "each_message",
    "encode",
    "format_datagram",
    "from_raw",
    "from_unix",
    "is_aligned",
    "now",
    "to_raw",
    "to_unix",
]
