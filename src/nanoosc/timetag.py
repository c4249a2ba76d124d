"""OSC time tags: 64-bit fixed point seconds since 1900-01-01.

Time values are handled as plain floats of seconds since the NTP epoch.
The raw wire form holds whole seconds in the high 32 bits and the
fractional second in the low 32 bits.
"""

import math
import time

SECONDS_FROM_UTC_TO_UNIX_EPOCH = 2208988800.0
SECONDS_TO_TIME = 2.0**32.0
TIME_TO_SECONDS = 1.0 / SECONDS_TO_TIME
UINT_MASK = 0xFFFFFFFF
UINT64_MASK = 0xFFFFFFFFFFFFFFFF

RAW_IMMEDIATELY = 1


def to_raw(seconds: float) -> int:
    """Convert OSC time to the raw 64-bit wire value.

    A result of 0 is reserved and replaced by 1 ("immediately").
    """
    whole = math.floor(seconds)
    fraction = int((seconds - whole) * SECONDS_TO_TIME) & UINT_MASK
    raw = ((whole << 32) + fraction) & UINT64_MASK
    return raw or RAW_IMMEDIATELY


def from_raw(raw: int) -> float:
    """Convert a raw 64-bit wire value to OSC time."""
    return raw * TIME_TO_SECONDS


IMMEDIATELY = from_raw(RAW_IMMEDIATELY)


def now() -> float:
    """Return the current wall-clock time as OSC time."""
    return time.time() + SECONDS_FROM_UTC_TO_UNIX_EPOCH


def from_unix(seconds: float) -> float:
    return seconds + SECONDS_FROM_UTC_TO_UNIX_EPOCH


def to_unix(seconds: float) -> float:
    return seconds - SECONDS_FROM_UTC_TO_UNIX_EPOCH
