"""Snowflake identifiers: 64-bit ids built from a timestamp, a node number and a sequence."""

from __future__ import annotations

import base64 as _b64
import binascii
import string
import threading
import time as _time

__all__ = [
    "EPOCH",
    "NODE_BITS",
    "STEP_BITS",
    "InvalidBase32Error",
    "InvalidBase58Error",
    "JSONSyntaxError",
    "ID",
    "Node",
    "new_node",
    "parse_int64",
    "parse_string",
    "parse_base2",
    "parse_base32",
    "parse_base36",
    "parse_base58",
    "parse_base64",
    "parse_bytes",
    "parse_int_bytes",
    "parse_json",
]

# Start of the id timeline in milliseconds since the Unix epoch (2025-02-25 20:25:25 UTC).
EPOCH = 1740515125000
NODE_BITS = 10
STEP_BITS = 12
_TOTAL_SHARED_BITS = 22

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_BASE32_ALPHABET = "ybndrfg8ejkmcpqxot1uwisza345h769"
_BASE58_ALPHABET = "123456789abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"
_BASE32_DECODE = {ord(ch): index for index, ch in enumerate(_BASE32_ALPHABET)}
_BASE58_DECODE = {ord(ch): index for index, ch in enumerate(_BASE58_ALPHABET)}
_DIGITS = string.digits + string.ascii_lowercase


class InvalidBase32Error(ValueError):
    """Raised when a base32 id contains a character outside the alphabet."""

    def __init__(self) -> None:
        super().__init__("invalid base32")


class InvalidBase58Error(ValueError):
    """Raised when a base58 id contains a character outside the alphabet."""

    def __init__(self) -> None:
        super().__init__("invalid base58")


class JSONSyntaxError(ValueError):
    """Raised when a JSON value is not a quoted decimal id."""

    def __init__(self, original: bytes) -> None:
        self.original = bytes(original)
        super().__init__(f"invalid snowflake ID {self.original.decode('utf-8', 'replace')!r}")


def _wrap_int64(value: int) -> int:
    return ((value - _INT64_MIN) % (1 << 64)) + _INT64_MIN


def _format_int(value: int, base: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    remaining = abs(value)
    digits = []
    while remaining:
        remaining, digit = divmod(remaining, base)
        digits.append(_DIGITS[digit])
    return sign + "".join(reversed(digits))


def _parse_int(text: str, base: int) -> int:
    """Parse a signed 64-bit integer strictly: optional sign, then digits only."""
    body = text[1:] if text[:1] in ("+", "-") else text
    allowed = _DIGITS[:base]
    if not body or any(ch.lower() not in allowed for ch in body):
        raise ValueError(f"invalid syntax for base {base} integer: {text!r}")
    value = int(text, base)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _encode_alphabet(value: int, alphabet: str) -> str:
    if value < 0:
        raise ValueError(f"cannot encode negative id: {value}")
    base = len(alphabet)
    chars = []
    while value >= base:
        value, digit = divmod(value, base)
        chars.append(alphabet[digit])
    chars.append(alphabet[value])
    return "".join(reversed(chars))


def _decode_alphabet(data: bytes | str, table: dict[int, int], error: type[ValueError]) -> ID:
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    base = len(table)
    value = 0
    for byte in raw:
        digit = table.get(byte)
        if digit is None:
            raise error()
        value = _wrap_int64(value * base + digit)
    return ID(value)


class ID(int):
    """A signed 64-bit snowflake identifier."""

    def __new__(cls, value: int = 0) -> ID:
        value = int(value)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise OverflowError(f"id does not fit in 64 bits: {value}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"ID({int(self)})"

    def __str__(self) -> str:
        return str(int(self))

    def base2(self) -> str:
        """Binary representation."""
        return _format_int(int(self), 2)

    def base32(self) -> str:
        """z-base-32 representation."""
        return _encode_alphabet(int(self), _BASE32_ALPHABET)

    def base36(self) -> str:
        """Base 36 representation, lower case."""
        return _format_int(int(self), 36)

    def base58(self) -> str:
        """Base58 representation."""
        return _encode_alphabet(int(self), _BASE58_ALPHABET)

    def base64(self) -> str:
        """Standard base64 of the decimal text."""
        return _b64.b64encode(self.as_bytes()).decode("ascii")

    def as_bytes(self) -> bytes:
        """The decimal text as bytes."""
        return str(self).encode("ascii")

    def int_bytes(self) -> bytes:
        """Eight big-endian bytes of the two's-complement value."""
        return int(self).to_bytes(8, "big", signed=True)

    def time(self, epoch: int = EPOCH, node_bits: int = NODE_BITS, step_bits: int = STEP_BITS) -> int:
        """Millisecond Unix timestamp encoded in the id."""
        return (int(self) >> (node_bits + step_bits)) + epoch

    def node(self, node_bits: int = NODE_BITS, step_bits: int = STEP_BITS) -> int:
        """Node number encoded in the id."""
        node_max = (1 << node_bits) - 1
        return (int(self) >> step_bits) & node_max

    def step(self, step_bits: int = STEP_BITS) -> int:
        """Sequence number encoded in the id."""
        return int(self) & ((1 << step_bits) - 1)

    def marshal_json(self) -> bytes:
        """JSON form: the decimal value as a quoted string."""
        return b'"' + self.as_bytes() + b'"'


class Node:
    """Generates unique ids for one node number; safe to share between threads."""

    def __init__(
        self,
        node_id: int,
        epoch: int = EPOCH,
        node_bits: int = NODE_BITS,
        step_bits: int = STEP_BITS,
    ) -> None:
        if node_bits + step_bits > _TOTAL_SHARED_BITS:
            raise ValueError("remember, you have a total 22 bits to share between Node/Step")
        node_max = (1 << node_bits) - 1
        if not 0 <= node_id <= node_max:
            raise ValueError(f"Node number must be between 0 and {node_max}")
        self.node_id = node_id
        self.epoch = epoch
        self.node_bits = node_bits
        self.step_bits = step_bits
        self._step_mask = (1 << step_bits) - 1
        self._time_shift = node_bits + step_bits
        self._node_shift = step_bits
        self._lock = threading.Lock()
        self._last_time = 0
        self._step = 0
        # Anchor wall-clock time once, then advance on the monotonic clock.
        self._start_ms = _time.time_ns() // 1_000_000 - epoch
        self._start_mono = _time.monotonic_ns()

    def _now(self) -> int:
        return self._start_ms + (_time.monotonic_ns() - self._start_mono) // 1_000_000

    def generate(self) -> ID:
        """Return the next unique id."""
        with self._lock:
            now = self._now()
            if now == self._last_time:
                self._step = (self._step + 1) & self._step_mask
                if self._step == 0:
                    while now <= self._last_time:
                        now = self._now()
            else:
                self._step = 0
            self._last_time = now
            return ID(
                _wrap_int64(
                    (now << self._time_shift) | (self.node_id << self._node_shift) | self._step
                )
            )


def new_node(
    node_id: int,
    epoch: int = EPOCH,
    node_bits: int = NODE_BITS,
    step_bits: int = STEP_BITS,
) -> Node:
    """Create a generator for ``node_id``."""
    return Node(node_id, epoch, node_bits, step_bits)


def parse_int64(value: int) -> ID:
    """Wrap an integer as an id."""
    return ID(value)


def parse_string(value: str) -> ID:
    """Parse a decimal id."""
    return ID(_parse_int(value, 10))


def parse_base2(value: str) -> ID:
    """Parse a binary id."""
    return ID(_parse_int(value, 2))


def parse_base32(data: bytes | str) -> ID:
    """Parse a z-base-32 id."""
    return _decode_alphabet(data, _BASE32_DECODE, InvalidBase32Error)


def parse_base36(value: str) -> ID:
    """Parse a base 36 id."""
    return ID(_parse_int(value, 36))


def parse_base58(data: bytes | str) -> ID:
    """Parse a base58 id."""
    return _decode_alphabet(data, _BASE58_DECODE, InvalidBase58Error)


def parse_base64(value: str) -> ID:
    """Parse the standard base64 of a decimal id."""
    try:
        raw = _b64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 id: {value!r}") from exc
    return parse_bytes(raw)


def parse_bytes(data: bytes) -> ID:
    """Parse decimal text given as bytes."""
    return parse_string(bytes(data).decode("latin-1"))


def parse_int_bytes(data: bytes) -> ID:
    """Parse eight big-endian bytes."""
    raw = bytes(data)
    if len(raw) != 8:
        raise ValueError(f"expected 8 bytes, got {len(raw)}")
    return ID(int.from_bytes(raw, "big", signed=True))


def parse_json(data: bytes | str) -> ID:
    """Parse the JSON form produced by ``ID.marshal_json``."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if len(raw) < 3 or raw[:1] != b'"' or raw[-1:] != b'"':
        raise JSONSyntaxError(raw)
    return parse_bytes(raw[1:-1])