# =============================================================================
# mailwire Core Module
# =============================================================================
# Plain dataclasses describing what gets sent and who sends it. No external
# dependencies, so they can be imported anywhere without circular imports.
#
#   - Account: A sending account (SMTP server, address)
#   - Mail: An outgoing message (headers, text, attachments)
#   - Attachment: A part of a mail, possibly with related parts
# =============================================================================

from mailwire.core.account import Account
from mailwire.core.mail import Attachment, AttachmentKind, Mail, render_headers

__all__ = [
    "Account",
    "Mail",
    "Attachment",
    "AttachmentKind",
    "render_headers",
]
