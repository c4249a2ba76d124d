"""Exception types raised by the OSC codec."""


class OscError(Exception):
    """Base class for all OSC decoding failures."""


class UnderrunError(OscError):
    """A read asked for more bytes than the buffer holds."""


class ParseError(OscError):
    """The input is structurally not a valid OSC packet."""
