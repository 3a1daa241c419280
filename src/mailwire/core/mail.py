# =============================================================================
# Mail Model
# =============================================================================
# The outgoing message as the MIME writer sees it:
#   - A pre-rendered header block (From, To, Subject, Date, ...)
#   - Plain text body
#   - An optional alternative rendering of the text (usually HTML)
#   - Attachments, each with its own pre-rendered headers, each possibly
#     carrying "related" attachments (e.g. images referenced by an HTML part)
#
# Header blocks are plain strings: one "NAME: value" line per header, each
# terminated by CRLF, no blank line at the end. The writer adds the blank
# lines where MIME needs them.
# =============================================================================

import mimetypes
import os
from dataclasses import dataclass, field
from email.header import Header
from email.utils import encode_rfc2231, formataddr, formatdate, getaddresses, make_msgid
from enum import Enum, auto

CRLF = "\r\n"

# Sent as X-MAILER on composed mails
MAILER_NAME = "mailwire"


def render_headers(header_map: dict[str, str]) -> str:
    """
    Render an ordered mapping of headers as CRLF-terminated lines.

    Values that aren't plain ASCII are RFC 2047 encoded (and folded), so
    the rendered block is always 7-bit clean.

    Example:
        >>> render_headers({"CONTENT-TYPE": "text/html"})
        'CONTENT-TYPE: text/html\\r\\n'
        >>> render_headers({"SUBJECT": "Grüße"})
        'SUBJECT: =?utf-8?b?R3LDvMOfZQ==?=\\r\\n'
    """
    return "".join(
        f"{name}: {_encode_value(name, value)}{CRLF}" for name, value in header_map.items()
    )


def _encode_value(name: str, value: str) -> str:
    if value.isascii():
        return value
    return Header(value, "utf-8", header_name=name).encode(linesep=CRLF)


def _format_addresses(addresses: list[str]) -> str:
    # Display names get RFC 2047 encoded by formataddr, the addresses stay as-is
    return ", ".join(formataddr(pair) for pair in getaddresses(addresses))


def _merge_headers(defaults: dict[str, str], additional: dict[str, str] | None) -> dict[str, str]:
    # Caller headers replace defaults with the same (case-insensitive) name
    merged = dict(defaults)
    for name, value in (additional or {}).items():
        merged[name.upper()] = value
    return merged


class AttachmentKind(Enum):
    """
    What an attachment's payload is, which decides how it gets encoded.

        - DATA: Raw bytes held in memory (base64)
        - FILE: Path to a file read at send time (base64)
        - HTML: HTML text (base64)
        - PGP: ASCII-armoured PGP text (sent as-is)
    """
    DATA = auto()
    FILE = auto()
    HTML = auto()
    PGP = auto()


@dataclass
class Attachment:
    """
    A part of an outgoing mail.

    Attachments form a tree: each one owns its related attachments, which
    are sent together with it inside a multipart/related envelope.

    Attributes:
        kind: Payload kind (see AttachmentKind).
        payload: bytes for DATA, a path for FILE, text for HTML and PGP.
        headers: Pre-rendered header block for this part.
        related: Attachments sent alongside this one (e.g. inline images
                 of an HTML part). Order is preserved on the wire.
        is_alternative: True if this is an alternative rendering of the
                        mail's plain text rather than a real attachment.

    Example:
        >>> logo = Attachment.file("logo.png", inline=True,
        ...                        additional_headers={"CONTENT-ID": "<logo>"})
        >>> body = Attachment.html("<img src='cid:logo'>", related=[logo])
    """
    kind: AttachmentKind
    payload: bytes | str
    headers: str = ""
    related: list["Attachment"] = field(default_factory=list)
    is_alternative: bool = False

    @property
    def has_related(self) -> bool:
        """Returns True if this attachment has related attachments."""
        return len(self.related) > 0

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def data(
        cls,
        data: bytes,
        mime_type: str,
        name: str = "",
        *,
        inline: bool = False,
        additional_headers: dict[str, str] | None = None,
        related: list["Attachment"] | None = None,
    ) -> "Attachment":
        """Create an attachment from bytes held in memory."""
        header_map = {
            "CONTENT-TYPE": mime_type,
            "CONTENT-DISPOSITION": _disposition(inline, name),
            "CONTENT-TRANSFER-ENCODING": "BASE64",
        }
        return cls(
            kind=AttachmentKind.DATA,
            payload=data,
            headers=render_headers(_merge_headers(header_map, additional_headers)),
            related=list(related or []),
        )

    @classmethod
    def file(
        cls,
        path: str,
        mime_type: str | None = None,
        name: str | None = None,
        *,
        inline: bool = False,
        additional_headers: dict[str, str] | None = None,
        related: list["Attachment"] | None = None,
    ) -> "Attachment":
        """
        Create an attachment from a file on disk.

        The file isn't read here; it's read (and must exist) when the mail
        is sent. The MIME type is guessed from the extension when omitted.
        """
        if name is None:
            name = os.path.basename(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"

        header_map = {
            "CONTENT-TYPE": mime_type,
            "CONTENT-DISPOSITION": _disposition(inline, name),
            "CONTENT-TRANSFER-ENCODING": "BASE64",
        }
        return cls(
            kind=AttachmentKind.FILE,
            payload=path,
            headers=render_headers(_merge_headers(header_map, additional_headers)),
            related=list(related or []),
        )

    @classmethod
    def html(
        cls,
        content: str,
        charset: str = "utf-8",
        *,
        alternative: bool = True,
        additional_headers: dict[str, str] | None = None,
        related: list["Attachment"] | None = None,
    ) -> "Attachment":
        """
        Create an HTML part. By default it's the alternative to the mail's
        plain text; pass alternative=False to send it as a regular part.
        """
        header_map = {
            "CONTENT-TYPE": f"text/html; charset={charset}",
            "CONTENT-DISPOSITION": "inline",
            "CONTENT-TRANSFER-ENCODING": "BASE64",
        }
        return cls(
            kind=AttachmentKind.HTML,
            payload=content,
            headers=render_headers(_merge_headers(header_map, additional_headers)),
            related=list(related or []),
            is_alternative=alternative,
        )

    @classmethod
    def pgp(
        cls,
        content: str,
        mime_type: str = "application/octet-stream",
        name: str = "encrypted.asc",
        *,
        inline: bool = True,
        additional_headers: dict[str, str] | None = None,
    ) -> "Attachment":
        """Create a part holding ASCII-armoured PGP data."""
        header_map = {
            "CONTENT-TYPE": mime_type,
            "CONTENT-DISPOSITION": _disposition(inline, name),
            "CONTENT-TRANSFER-ENCODING": "7bit",
        }
        return cls(
            kind=AttachmentKind.PGP,
            payload=content,
            headers=render_headers(_merge_headers(header_map, additional_headers)),
        )


def _disposition(inline: bool, name: str) -> str:
    disposition = "inline" if inline else "attachment"
    if not name:
        return disposition
    if name.isascii():
        return f'{disposition}; filename="{name}"'
    # RFC 2231 extended parameter for non-ASCII filenames
    return f"{disposition}; filename*={encode_rfc2231(name, 'utf-8')}"


@dataclass
class Mail:
    """
    An outgoing email, ready to be written by the MIME writer.

    Attributes:
        headers: Pre-rendered top-level header block.
        text: Plain text body.
        attachments: Attachments in the order they'll be sent.
        alternative: Alternative rendering of the text (usually HTML).
        pgp: True if the mail is PGP-encrypted (multipart/encrypted).

    Example:
        >>> mail = Mail.compose(
        ...     sender="alice@example.com",
        ...     to=["bob@example.com"],
        ...     subject="Hi",
        ...     text="Hello",
        ... )
    """
    headers: str = ""
    text: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    alternative: Attachment | None = None
    pgp: bool = False

    @property
    def has_attachment(self) -> bool:
        """
        Returns True if the mail needs a multipart body: it has
        attachments or an alternative.
        """
        return len(self.attachments) > 0 or self.alternative is not None

    @classmethod
    def compose(
        cls,
        sender: str,
        to: list[str],
        *,
        sender_name: str = "",
        cc: list[str] | None = None,
        subject: str = "",
        text: str = "",
        attachments: list[Attachment] | None = None,
        pgp: bool = False,
        additional_headers: dict[str, str] | None = None,
    ) -> "Mail":
        """
        Build a Mail and render its header block.

        The first attachment flagged as an alternative becomes the mail's
        alternative; the others are sent as regular attachments.
        """
        domain = sender.rsplit("@", 1)[-1] if "@" in sender else None

        header_map = {
            "MIME-VERSION": "1.0",
            "DATE": formatdate(localtime=True),
            "FROM": formataddr((sender_name, sender)),
            "TO": _format_addresses(to),
        }
        if cc:
            header_map["CC"] = _format_addresses(cc)
        header_map["SUBJECT"] = subject
        header_map["MESSAGE-ID"] = make_msgid(domain=domain)
        header_map["X-MAILER"] = MAILER_NAME

        alternative = None
        regular = []
        for attachment in attachments or []:
            if attachment.is_alternative and alternative is None:
                alternative = attachment
            else:
                regular.append(attachment)

        return cls(
            headers=render_headers(_merge_headers(header_map, additional_headers)),
            text=text,
            attachments=regular,
            alternative=alternative,
            pgp=pgp,
        )
