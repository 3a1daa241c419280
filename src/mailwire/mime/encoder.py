# =============================================================================
# Content Encoder
# =============================================================================
# Turns attachment payloads into the bytes that go on the wire:
#
#   - Raw bytes, files, HTML  -> base64, 76 characters per line
#   - PGP text                -> passed through untouched (already ASCII)
#
# Every encoding goes through the EncodedPayloadCache first. On a miss the
# payload is encoded, stored, and the freshly encoded value is returned.
# =============================================================================

import base64
import hashlib
import logging

from mailwire.core import Attachment, AttachmentKind
from mailwire.mime.cache import EncodedPayloadCache
from mailwire.mime.sink import MimeError

logger = logging.getLogger(__name__)

# RFC 2045 limit for base64 encoded lines
LINE_LENGTH = 76


def base64_wrap(data: bytes, line_length: int = LINE_LENGTH) -> bytes:
    """
    Base64-encode data, breaking lines every ``line_length`` characters.

    Lines are separated by CRLF; there is no line break after the last
    line, the caller frames the block.

    Example:
        >>> base64_wrap(b"hello")
        b'aGVsbG8='
    """
    encoded = base64.b64encode(data)
    return b"\r\n".join(
        encoded[i:i + line_length] for i in range(0, len(encoded), line_length)
    )


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ContentEncoder:
    """
    Encodes attachment payloads, memoizing the results.

    Usage:
        >>> encoder = ContentEncoder(cache=shared_cache)
        >>> encoder.encode(attachment)
        b'JVBERi0xLjQK...'

    Attributes:
        cache: The EncodedPayloadCache consulted before every encoding.
               Pass one cache to several encoders to share it.
    """

    def __init__(self, cache: EncodedPayloadCache | None = None) -> None:
        self.cache = cache if cache is not None else EncodedPayloadCache()

    def encode(self, attachment: Attachment) -> bytes:
        """
        Encode an attachment's payload according to its kind.

        Raises:
            AttachmentNotFoundError: If a file attachment doesn't exist.
            AttachmentReadError: If a file attachment can't be read.
        """
        if attachment.kind is AttachmentKind.DATA:
            return self.encode_data(attachment.payload)
        if attachment.kind is AttachmentKind.FILE:
            return self.encode_file(attachment.payload)
        if attachment.kind is AttachmentKind.HTML:
            return self.encode_html(attachment.payload)
        if attachment.kind is AttachmentKind.PGP:
            return self.encode_pgp(attachment.payload)
        raise ValueError(f"Unknown attachment kind: {attachment.kind!r}")

    def encode_data(self, data: bytes) -> bytes:
        """Base64-encode in-memory bytes."""
        key = f"data:{_digest(data)}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        encoded = base64_wrap(data)
        self.cache.set(key, encoded)
        return encoded

    def encode_file(self, path: str) -> bytes:
        """
        Read a file fully and base64-encode it.

        The cache is keyed by path, so a file that is already cached isn't
        opened at all.

        Raises:
            AttachmentNotFoundError: If nothing exists at ``path``.
            AttachmentReadError: If ``path`` can't be opened or read
                (a directory, no permission, I/O error).
        """
        key = f"file:{path}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Encoded file cache hit: {path}")
            return cached

        try:
            with open(path, "rb") as f:
                content = f.read()
        except FileNotFoundError as e:
            raise AttachmentNotFoundError(path) from e
        except OSError as e:
            raise AttachmentReadError(path, e) from e

        encoded = base64_wrap(content)
        self.cache.set(key, encoded)
        logger.debug(f"Encoded file {path}: {len(content)} -> {len(encoded)} bytes")
        return encoded

    def encode_html(self, html: str) -> bytes:
        """Base64-encode HTML text as UTF-8."""
        raw = html.encode("utf-8")
        key = f"html:{_digest(raw)}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        encoded = base64_wrap(raw)
        self.cache.set(key, encoded)
        return encoded

    def encode_pgp(self, pgp: str) -> bytes:
        """
        Return ASCII-armoured PGP text as-is (UTF-8 bytes, no base64).

        Goes through the cache like the other encodings even though the
        stored value is just the text itself.
        """
        raw = pgp.encode("utf-8")
        key = f"pgp:{_digest(raw)}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        self.cache.set(key, raw)
        return raw


# =============================================================================
# Exceptions
# =============================================================================

class AttachmentNotFoundError(MimeError):
    """Raised when a file attachment can't be found on disk."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Attachment file not found: {path}")
        self.path = path


class AttachmentReadError(MimeError):
    """Raised when a file attachment exists but can't be opened or read."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"Can't read attachment file {path}: {cause.strerror or cause}")
        self.path = path
