# =============================================================================
# MIME Module
# =============================================================================
# Serializes mails into MIME and writes them to the wire.
#
# Components:
#   - DataWriter: walks the mail's part tree and emits the MIME structure
#   - ContentEncoder: base64-encodes payloads, memoized per payload
#   - EncodedPayloadCache: the shared, thread-safe memo
#   - TransportSink / StreamSink: where the bytes go
# =============================================================================

from mailwire.mime.cache import EncodedPayloadCache
from mailwire.mime.encoder import (
    AttachmentNotFoundError,
    AttachmentReadError,
    ContentEncoder,
    base64_wrap,
)
from mailwire.mime.sink import MimeError, Sink, StreamSink, TransportError, TransportSink
from mailwire.mime.writer import DataWriter

__all__ = [
    "DataWriter",
    "ContentEncoder",
    "EncodedPayloadCache",
    "Sink",
    "TransportSink",
    "StreamSink",
    "base64_wrap",
    "MimeError",
    "TransportError",
    "AttachmentNotFoundError",
    "AttachmentReadError",
]
