# =============================================================================
# MIME Data Writer
# =============================================================================
# Writes the content of a Mail (headers, text, attachments) to a Sink as a
# MIME byte stream. Meant to run during the SMTP DATA phase: the session has
# already sent DATA and will send the final "." once we're done.
#
# Message structure, decided once per mail:
#
#   no attachments     ->  text/plain body
#   attachments        ->  multipart/mixed (multipart/encrypted for PGP)
#                            |- text, or multipart/alternative (text + html)
#                            |- attachment
#                            |- multipart/related (attachment + related parts)
#                            ...
#
# Output is produced in a single forward pass, part by part; nothing is
# assembled in memory beyond a single encoded payload.
# =============================================================================

import logging

from mailwire.core import Attachment, Mail
from mailwire.mime import headers
from mailwire.mime.encoder import ContentEncoder
from mailwire.mime.headers import CRLF
from mailwire.mime.sink import Sink

logger = logging.getLogger(__name__)


class DataWriter:
    """
    Serializes a Mail into MIME and writes it to a sink.

    Every unit the writer emits carries its own line endings, so what
    reaches a TransportSink is exactly the wire format.

    Usage:
        >>> writer = DataWriter(TransportSink(protocol), ContentEncoder(cache))
        >>> writer.send(mail)

    Attributes:
        sink: Where the bytes go.
        encoder: Encodes attachment payloads (shares its cache across sends).
    """

    def __init__(self, sink: Sink, encoder: ContentEncoder | None = None) -> None:
        self.sink = sink
        self.encoder = encoder or ContentEncoder()

    def send(self, mail: Mail, include_headers: bool = True) -> None:
        """
        Write the headers (optionally), text, and attachments of a mail.

        Raises:
            AttachmentNotFoundError: If a file attachment is missing.
            TransportError: If the sink fails. Nothing is retried.
        """
        if include_headers:
            self.sink.write_text(mail.headers)

        if mail.has_attachment:
            self._send_mixed(mail)
        else:
            self._send_text(mail.text)

    # -------------------------------------------------------------------------
    # Body sections
    # -------------------------------------------------------------------------

    def _send_text(self, text: str) -> None:
        self.sink.write_text(headers.embedded_text(text))

    def _send_mixed(self, mail: Mail) -> None:
        boundary = headers.make_boundary()

        if mail.pgp:
            self.sink.write_text(headers.encrypted_header(boundary))
        else:
            self.sink.write_text(headers.mixed_header(boundary))

        logger.debug(
            f"Mixed envelope {boundary}: {len(mail.attachments)} attachment(s), "
            f"alternative={mail.alternative is not None}, pgp={mail.pgp}"
        )

        # An encrypted mail with no text starts straight with its attachments
        if not mail.pgp or mail.text:
            self.sink.write_text(headers.start_line(boundary))

        self._send_alternative(mail)
        self._send_attachments(mail.attachments, boundary)

    def _send_alternative(self, mail: Mail) -> None:
        """
        Write the text section of a mixed mail.

        With an alternative (usually HTML) it becomes a multipart/alternative
        of the plain text and the alternative. The alternative takes
        precedence over PGP handling.
        """
        if mail.alternative is not None:
            boundary = headers.make_boundary()
            self.sink.write_text(headers.alternative_header(boundary))

            self.sink.write_text(headers.start_line(boundary))
            self._send_text(mail.text)

            self.sink.write_text(headers.start_line(boundary))
            self._send_attachment(mail.alternative)

            self.sink.write_text(headers.end_line(boundary))
            return

        if mail.pgp:
            if mail.text:
                self.sink.write_text(headers.pgp_content_headers())
                self.sink.write_text(mail.text + CRLF)
        else:
            self._send_text(mail.text)

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    def _send_attachments(self, attachments: list[Attachment], boundary: str) -> None:
        for attachment in attachments:
            self.sink.write_text(headers.start_line(boundary))
            self._send_attachment(attachment)
        self.sink.write_text(headers.end_line(boundary))

    def _send_attachment(self, attachment: Attachment) -> None:
        """
        Write one attachment, wrapped in multipart/related when it has
        related parts (which are written after it, recursively).
        """
        related_boundary = ""
        if attachment.has_related:
            related_boundary = headers.make_boundary()
            self.sink.write_text(headers.related_header(related_boundary))
            self.sink.write_text(headers.start_line(related_boundary))

        # Blank line ends the attachment's header block
        self.sink.write_text(attachment.headers + CRLF)
        self.sink.write_bytes(self.encoder.encode(attachment))
        self.sink.write_text(CRLF)

        if attachment.has_related:
            logger.debug(
                f"Related envelope {related_boundary}: "
                f"{len(attachment.related)} part(s)"
            )
            self._send_attachments(attachment.related, related_boundary)
