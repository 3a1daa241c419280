# =============================================================================
# SMTP Module
# =============================================================================
# Handles sending emails via SMTP (Simple Mail Transfer Protocol).
#
# Features:
#   - Connection with SSL/STARTTLS
#   - Credentials from the system keyring
#   - Message content streamed onto the connection during DATA
# =============================================================================

from mailwire.smtp.client import (
    DotStuffingTransport,
    SMTPClient,
    SMTPError,
    SMTPConnectionError,
    SMTPAuthenticationError,
    SendError,
)

__all__ = [
    "SMTPClient",
    "DotStuffingTransport",
    "SMTPError",
    "SMTPConnectionError",
    "SMTPAuthenticationError",
    "SendError",
]
