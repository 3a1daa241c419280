# =============================================================================
# Sink Writers
# =============================================================================
# Where the MIME writer puts its bytes. Two interchangeable backends:
#
#   - TransportSink: a live connection in the middle of an SMTP DATA phase.
#     Writes exactly what it is given, the writer does its own line framing.
#   - StreamSink: any binary stream (a file, stdout, BytesIO). Appends a line
#     terminator after each text write, which makes its output easy to read
#     when dumping a message for diagnostics.
#
# The writer only ever talks to the Sink interface.
# =============================================================================

import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)


class Sink(ABC):
    """
    Destination for the raw bytes of a message.

    Both operations either write the whole buffer or raise TransportError.
    """

    @abstractmethod
    def write_text(self, text: str) -> None:
        """Write a chunk of text, encoded as UTF-8."""

    @abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Write a block of bytes verbatim."""


class TransportSink(Sink):
    """
    Sink over a live network transport.

    The transport is anything with a ``write(bytes)`` method, typically an
    asyncio transport or aiosmtplib's SMTPProtocol. Transports buffer
    internally, so a write call either takes the whole buffer or fails.

    Usage:
        >>> sink = TransportSink(smtp.protocol)
        >>> DataWriter(sink).send(mail)
    """

    def __init__(self, transport: Any) -> None:
        self._transport = transport

    def write_text(self, text: str) -> None:
        self._write(text.encode("utf-8"))

    def write_bytes(self, data: bytes) -> None:
        self._write(data)

    def _write(self, data: bytes) -> None:
        is_closing = getattr(self._transport, "is_closing", None)
        if is_closing is not None and is_closing():
            raise TransportError("Connection closed while writing message data")

        try:
            self._transport.write(data)
        except OSError as e:
            raise TransportError(f"Failed to write to transport: {e}") from e


class StreamSink(Sink):
    """
    Sink over a binary stream.

    The writer already ends its own lines, so with a non-empty terminator
    every text unit is followed by an extra line break. That output is a
    diagnostic view of the writer's units, not a parseable message: the
    blank line after the header block pushes the top-level CONTENT-TYPE
    into the body. Use line_terminator="" for a valid MIME message.

    Attributes:
        line_terminator: Appended to every write_text call. Pass "" to get
                         the exact wire bytes (what a TransportSink would
                         have sent).
    """

    def __init__(self, stream: BinaryIO, line_terminator: str = "\r\n") -> None:
        self._stream = stream
        self.line_terminator = line_terminator

    def write_text(self, text: str) -> None:
        self._write((text + self.line_terminator).encode("utf-8"))

    def write_bytes(self, data: bytes) -> None:
        self._write(data)

    def _write(self, data: bytes) -> None:
        """
        Write the whole buffer, looping over short writes.

        Buffered streams always take everything; raw streams (sockets,
        pipes opened unbuffered) may take only part of it.
        """
        remaining = memoryview(data)
        while remaining:
            try:
                written = self._stream.write(remaining)
            except (OSError, ValueError) as e:
                # ValueError is what a closed file raises
                raise TransportError(f"Failed to write to stream: {e}") from e

            if not written:
                raise TransportError(
                    f"Stream accepted no data ({len(remaining)} bytes pending)"
                )
            if written < len(remaining):
                logger.debug(f"Short write: {written} of {len(remaining)} bytes")
            remaining = remaining[written:]


# =============================================================================
# Exceptions
# =============================================================================

class MimeError(Exception):
    """Base exception for the MIME writer layer."""
    pass


class TransportError(MimeError):
    """Raised when the sink can't take the message bytes."""
    pass
