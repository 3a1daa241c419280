# =============================================================================
# MIME Envelope Headers and Boundaries
# =============================================================================
# The only MIME headers this layer writes on its own: the Content-Type lines
# that open a multipart envelope, the headers wrapped around the plain-text
# body, and the boundary delimiter lines.
#
# Everything else (From, To, attachment headers...) arrives pre-rendered on
# the Mail and Attachment objects.
# =============================================================================

import uuid

CRLF = "\r\n"


def make_boundary() -> str:
    """
    Create a fresh boundary token for one multipart envelope.

    The token is a random UUID with the dashes stripped: 32 hexadecimal
    characters that will not show up in base64 or 7bit text by accident.
    """
    return uuid.uuid4().hex.upper()


def start_line(boundary: str) -> str:
    """Delimiter line that opens a part inside an envelope."""
    return f"--{boundary}{CRLF}"


def end_line(boundary: str) -> str:
    """Delimiter line that closes an envelope."""
    return f"--{boundary}--{CRLF}"


# =============================================================================
# Envelope Headers
# =============================================================================
# Each header is followed by the blank line that ends the header block, so
# the next thing written is the envelope's first delimiter.

def mixed_header(boundary: str) -> str:
    return f'CONTENT-TYPE: multipart/mixed; boundary="{boundary}"{CRLF}{CRLF}'


def encrypted_header(boundary: str) -> str:
    return (
        f'CONTENT-TYPE: multipart/encrypted; boundary="{boundary}"; '
        f'protocol="application/pgp-encrypted"{CRLF}{CRLF}'
    )


def alternative_header(boundary: str) -> str:
    return f'CONTENT-TYPE: multipart/alternative; boundary="{boundary}"{CRLF}{CRLF}'


def related_header(boundary: str) -> str:
    """
    Header for an attachment that has related parts, such as an HTML body
    whose inline images are referenced by Content-ID.
    """
    return f'CONTENT-TYPE: multipart/related; boundary="{boundary}"{CRLF}{CRLF}'


def pgp_content_headers() -> str:
    """Headers placed in front of an ASCII-armoured PGP body."""
    return (
        f'CONTENT-TYPE: text/plain; charset="utf-8"{CRLF}'
        f"CONTENT-TRANSFER-ENCODING: 7bit{CRLF}"
        f"CONTENT-DISPOSITION: inline{CRLF}"
        f"{CRLF}"
    )


def embedded_text(text: str) -> str:
    """
    Wrap plain text with the headers that make it a standalone text part.

    Example:
        >>> embedded_text("Hello")
        'CONTENT-TYPE: text/plain; charset=utf-8\\r\\n...\\r\\n\\r\\nHello\\r\\n'
    """
    return (
        f"CONTENT-TYPE: text/plain; charset=utf-8{CRLF}"
        f"CONTENT-TRANSFER-ENCODING: 7bit{CRLF}"
        f"CONTENT-DISPOSITION: inline{CRLF}"
        f"{CRLF}{text}{CRLF}"
    )
