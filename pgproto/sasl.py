"""Client side of the SCRAM-SHA-256 and SCRAM-SHA-256-PLUS SASL exchange.

After constructing a :class:`ScramSha256`, send ``message()`` to the server
in a ``SASLInitialResponse``. Pass the contents of the server's
``AuthenticationSASLContinue`` message to :meth:`ScramSha256.update` and send
``message()`` again in a ``SASLResponse``. Finally pass the contents of
``AuthenticationSASLFinal`` to :meth:`ScramSha256.finish`; authentication has
only succeeded if that call returns without raising.
"""

from __future__ import annotations

import base64
import binascii
import enum
import hashlib
import hmac
import secrets
import stringprep
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass

from .core import ProtocolError

NONCE_LENGTH = 24

SCRAM_SHA_256 = "SCRAM-SHA-256"
"""The identifier of the SCRAM-SHA-256 SASL mechanism."""

SCRAM_SHA_256_PLUS = "SCRAM-SHA-256-PLUS"
"""The identifier of the SCRAM-SHA-256-PLUS SASL mechanism."""

_MAX_U32 = 2**32 - 1


class ScramError(ProtocolError):
    """Raised when a SCRAM exchange fails or a server message is malformed."""


_PROHIBITED: tuple[Callable[[str], bool], ...] = (
    stringprep.in_table_c12,
    stringprep.in_table_c21_c22,
    stringprep.in_table_c3,
    stringprep.in_table_c4,
    stringprep.in_table_c5,
    stringprep.in_table_c6,
    stringprep.in_table_c7,
    stringprep.in_table_c8,
    stringprep.in_table_c9,
)


def saslprep(text: str) -> str:
    """Prepare a string with the SASLprep profile of stringprep.

    Raises :class:`ValueError` if the string holds prohibited or unassigned
    characters, or breaks the bidirectional text rules.
    """
    mapped = "".join(
        " " if stringprep.in_table_c12(ch) else ch
        for ch in text
        if not stringprep.in_table_b1(ch)
    )
    normalized = unicodedata.ucd_3_2_0.normalize("NFKC", mapped)

    for ch in normalized:
        if any(check(ch) for check in _PROHIBITED):
            raise ValueError(f"prohibited character {ch!r}")
        if stringprep.in_table_a1(ch):
            raise ValueError(f"unassigned code point {ch!r}")

    if any(stringprep.in_table_d1(ch) for ch in normalized):
        if any(stringprep.in_table_d2(ch) for ch in normalized):
            raise ValueError("mixed left-to-right and right-to-left text")
        if not (
            stringprep.in_table_d1(normalized[0])
            and stringprep.in_table_d1(normalized[-1])
        ):
            raise ValueError("right-to-left text must start and end with such a character")

    return normalized


def normalize(password: bytes | str) -> bytes:
    """Apply SASLprep to a password where possible.

    Passwords that are not valid UTF-8, or that SASLprep rejects, are
    returned unchanged as raw bytes.
    """
    raw = password.encode("utf-8") if isinstance(password, str) else bytes(password)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw
    try:
        return saslprep(text).encode("utf-8")
    except ValueError:
        return raw


def hi(password: bytes, salt: bytes, iterations: int) -> bytes:
    """The ``Hi`` function of RFC 5802 (PBKDF2 with HMAC-SHA-256)."""
    return hashlib.pbkdf2_hmac("sha256", bytes(password), bytes(salt), max(iterations, 1), 32)


def _hmac(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha256).digest()


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ScramError(str(exc)) from exc


class _BindingKind(enum.Enum):
    UNREQUESTED = "y,,"
    UNSUPPORTED = "n,,"
    TLS_SERVER_END_POINT = "p=tls-server-end-point,,"


@dataclass(frozen=True)
class ChannelBinding:
    """The channel binding configuration for a SCRAM exchange."""

    kind: _BindingKind
    data: bytes = b""

    @classmethod
    def unrequested(cls) -> ChannelBinding:
        """The server did not request channel binding."""
        return cls(_BindingKind.UNREQUESTED)

    @classmethod
    def unsupported(cls) -> ChannelBinding:
        """The server requested channel binding but the client cannot provide it."""
        return cls(_BindingKind.UNSUPPORTED)

    @classmethod
    def tls_server_end_point(cls, signature: bytes) -> ChannelBinding:
        """Bind to the channel with the ``tls-server-end-point`` method."""
        return cls(_BindingKind.TLS_SERVER_END_POINT, bytes(signature))

    @property
    def gs2_header(self) -> str:
        return self.kind.value

    @property
    def cbind_data(self) -> bytes:
        if self.kind is _BindingKind.TLS_SERVER_END_POINT:
            return self.data
        return b""


@dataclass(frozen=True)
class ServerFirstMessage:
    """The parsed contents of an ``AuthenticationSASLContinue`` message."""

    nonce: str
    salt: str
    iteration_count: int


@dataclass(frozen=True)
class ServerFinalMessage:
    """The parsed contents of an ``AuthenticationSASLFinal`` message.

    Exactly one of ``error`` and ``verifier`` is set.
    """

    error: str | None = None
    verifier: str | None = None


def _printable(c: str) -> bool:
    return "\x21" <= c <= "\x2b" or "\x2d" <= c <= "\x7e"


def _base64_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c in "/+=")


class _Parser:
    def __init__(self, text: str) -> None:
        self._s = text
        self._pos = 0

    def _byte_offset(self, index: int) -> int:
        return len(self._s[:index].encode("utf-8"))

    def _peek(self) -> str | None:
        return self._s[self._pos] if self._pos < len(self._s) else None

    def _eat(self, target: str) -> None:
        c = self._peek()
        if c is None:
            raise ScramError("unexpected EOF")
        if c != target:
            raise ScramError(
                f"unexpected character at byte {self._byte_offset(self._pos)}: "
                f"expected `{target}` but got `{c}"
            )
        self._pos += 1

    def _take_while(self, pred: Callable[[str], bool]) -> str:
        start = self._pos
        while self._pos < len(self._s) and pred(self._s[self._pos]):
            self._pos += 1
        return self._s[start : self._pos]

    def _field(self, key: str, pred: Callable[[str], bool]) -> str:
        self._eat(key)
        self._eat("=")
        return self._take_while(pred)

    def _iteration_count(self) -> int:
        digits = self._field("i", lambda c: c in "0123456789")
        if not digits:
            raise ScramError("cannot parse integer from empty string")
        count = int(digits)
        if count > _MAX_U32:
            raise ScramError("number too large to fit in target type")
        return count

    def _eof(self) -> None:
        if self._pos < len(self._s):
            raise ScramError(
                f"unexpected trailing data at byte {self._byte_offset(self._pos)}"
            )

    def server_first_message(self) -> ServerFirstMessage:
        nonce = self._field("r", _printable)
        self._eat(",")
        salt = self._field("s", _base64_char)
        self._eat(",")
        iteration_count = self._iteration_count()
        self._eof()
        return ServerFirstMessage(nonce, salt, iteration_count)

    def server_final_message(self) -> ServerFinalMessage:
        if self._peek() == "e":
            result = ServerFinalMessage(error=self._field("e", lambda c: c in "\0=,"))
        else:
            result = ServerFinalMessage(verifier=self._field("v", _base64_char))
        self._eof()
        return result


def parse_server_first_message(message: str) -> ServerFirstMessage:
    """Parse the server's first SCRAM message."""
    return _Parser(message).server_first_message()


def parse_server_final_message(message: str) -> ServerFinalMessage:
    """Parse the server's final SCRAM message."""
    return _Parser(message).server_final_message()


def _random_nonce() -> str:
    chars = []
    for _ in range(NONCE_LENGTH):
        v = 0x21 + secrets.randbelow(0x7E - 0x21)
        chars.append(chr(0x7E if v == 0x2C else v))
    return "".join(chars)


def _decode_utf8(message: bytes) -> str:
    try:
        return bytes(message).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ScramError(str(exc)) from exc


@dataclass(frozen=True)
class _Update:
    nonce: str
    password: bytes
    channel_binding: ChannelBinding


@dataclass(frozen=True)
class _Finish:
    salted_password: bytes
    auth_message: str


class ScramSha256:
    """The client side of a SCRAM-SHA-256(-PLUS) authentication exchange."""

    def __init__(
        self,
        password: bytes | str,
        channel_binding: ChannelBinding,
        nonce: str | None = None,
    ) -> None:
        if nonce is None:
            nonce = _random_nonce()
        self._message = f"{channel_binding.gs2_header}n=,r={nonce}"
        self._state: _Update | _Finish | None = _Update(
            nonce, normalize(password), channel_binding
        )

    def message(self) -> bytes:
        """Return the message to send to the server next."""
        if self._state is None:
            raise ScramError("invalid SCRAM state")
        return self._message.encode("utf-8")

    def update(self, message: bytes) -> None:
        """Process the server's ``AuthenticationSASLContinue`` message."""
        state, self._state = self._state, None
        if not isinstance(state, _Update):
            raise ScramError("invalid SCRAM state")

        text = _decode_utf8(message)
        parsed = parse_server_first_message(text)

        if not parsed.nonce.startswith(state.nonce):
            raise ScramError("invalid nonce")

        salt = _b64decode(parsed.salt)
        salted_password = hi(state.password, salt, parsed.iteration_count)

        client_key = _hmac(salted_password, b"Client Key")
        stored_key = hashlib.sha256(client_key).digest()

        binding = state.channel_binding
        cbind_input = base64.b64encode(
            binding.gs2_header.encode("ascii") + binding.cbind_data
        ).decode("ascii")

        without_proof = f"c={cbind_input},r={parsed.nonce}"
        auth_message = f"n=,r={state.nonce},{text},{without_proof}"

        client_signature = _hmac(stored_key, auth_message.encode("utf-8"))
        client_proof = bytes(k ^ s for k, s in zip(client_key, client_signature))

        self._message = (
            f"{without_proof},p={base64.b64encode(client_proof).decode('ascii')}"
        )
        self._state = _Finish(salted_password, auth_message)

    def finish(self, message: bytes) -> None:
        """Verify the server's ``AuthenticationSASLFinal`` message.

        Raises :class:`ScramError` unless the server proved it knows the
        password.
        """
        state, self._state = self._state, None
        if not isinstance(state, _Finish):
            raise ScramError("invalid SCRAM state")

        parsed = parse_server_final_message(_decode_utf8(message))
        if parsed.error is not None:
            raise ScramError(f"SCRAM error: {parsed.error}")

        verifier = _b64decode(parsed.verifier or "")
        server_key = _hmac(state.salted_password, b"Server Key")
        expected = _hmac(server_key, state.auth_message.encode("utf-8"))
        if not hmac.compare_digest(expected, verifier):
            raise ScramError("SCRAM verification error")