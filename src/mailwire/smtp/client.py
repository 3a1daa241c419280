# =============================================================================
# SMTP Client
# =============================================================================
# Provides the async SMTP session that mails are sent through.
#
# Key responsibilities:
#   - Connection management with SSL/STARTTLS
#   - Authentication with credentials from the system keyring
#   - The envelope (MAIL FROM, RCPT TO) and the DATA phase
#   - Streaming the message content through the MIME DataWriter straight
#     onto the connection, then closing the DATA phase with "."
#
# Uses aiosmtplib for async operations.
# =============================================================================

import logging
from typing import TYPE_CHECKING, Any

import aiosmtplib
import keyring

from mailwire.mime import (
    ContentEncoder,
    DataWriter,
    EncodedPayloadCache,
    MimeError,
    TransportSink,
)

if TYPE_CHECKING:
    from mailwire.core import Account, Mail

logger = logging.getLogger(__name__)


class DotStuffingTransport:
    """
    Wraps a transport and applies SMTP dot-stuffing to everything written.

    During DATA a line consisting of "." ends the message, so every line
    that starts with a period gets a second one (RFC 5321 section 4.5.2).
    Line starts are tracked across write calls.
    """

    def __init__(self, transport: Any) -> None:
        self._transport = transport
        self._at_line_start = True

    def write(self, data: bytes) -> None:
        if not data:
            return
        if self._at_line_start and data.startswith(b"."):
            data = b"." + data
        data = data.replace(b"\n.", b"\n..")
        self._at_line_start = data.endswith(b"\n")
        self._transport.write(data)

    def is_closing(self) -> bool:
        is_closing = getattr(self._transport, "is_closing", None)
        return bool(is_closing()) if is_closing is not None else False


class SMTPClient:
    """
    Async SMTP client that streams mails through the MIME writer.

    Usage:
        >>> client = SMTPClient(account, cache=shared_cache)
        >>> await client.connect()
        >>> await client.send(mail, ["bob@example.com"])
        >>> await client.disconnect()

    Attributes:
        account: Account configuration with SMTP server details.
        cache: Encoded payload cache shared by every mail sent through
               this client (and any other client given the same cache).
    """

    # Timeout for SMTP operations (seconds)
    TIMEOUT = 30

    def __init__(self, account: "Account", cache: EncodedPayloadCache | None = None) -> None:
        """
        Initialize the SMTP client.

        Args:
            account: Account configuration with SMTP server details.
            cache: Optional shared cache. A private one is created if omitted.
        """
        self.account = account
        self.cache = cache if cache is not None else EncodedPayloadCache()
        self._encoder = ContentEncoder(self.cache)
        self._client: aiosmtplib.SMTP | None = None

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None and self._client.is_connected

    async def connect(self) -> bool:
        """
        Connect to the SMTP server.

        Returns:
            True if connection succeeded.

        Raises:
            SMTPConnectionError: If unable to connect.
            SMTPAuthenticationError: If authentication fails.
        """
        logger.info(f"Connecting to SMTP {self.account.smtp_host}:{self.account.smtp_port}")

        try:
            self._client = aiosmtplib.SMTP(
                **self.account.connection_options(),
                timeout=self.TIMEOUT,
            )

            await self._client.connect()
            logger.debug("SMTP connection established")

            if self.account.authenticate:
                await self._authenticate()

            logger.info(f"Successfully connected to SMTP {self.account.smtp_host}")
            return True

        except SMTPAuthenticationError:
            self._client = None
            raise
        except aiosmtplib.SMTPAuthenticationError as e:
            self._client = None
            raise SMTPAuthenticationError(
                f"SMTP authentication failed for {self.account.email}: {e}"
            ) from e
        except (aiosmtplib.SMTPException, OSError) as e:
            self._client = None
            raise SMTPConnectionError(
                f"Failed to connect to SMTP {self.account.smtp_host}:{self.account.smtp_port}: {e}"
            ) from e

    async def _authenticate(self) -> None:
        """
        Authenticate with the SMTP server using credentials from keyring.

        Raises:
            SMTPAuthenticationError: If password not found.
            aiosmtplib.SMTPAuthenticationError: If the server rejects it.
        """
        password = keyring.get_password(
            self.account.keyring_service,
            self.account.email
        )

        if not password:
            raise SMTPAuthenticationError(
                f"No password found in keyring for {self.account.email}. "
                f"Set it with: {self.account.keyring_hint}"
            )

        logger.debug(f"Authenticating as {self.account.email}")
        await self._client.login(self.account.email, password)
        logger.debug("SMTP authentication successful")

    async def disconnect(self) -> None:
        """Disconnect from the SMTP server."""
        if self._client and self._client.is_connected:
            try:
                logger.debug("Disconnecting from SMTP")
                await self._client.quit()
            except aiosmtplib.SMTPException as e:
                logger.warning(f"Error during SMTP disconnect: {e}")
            finally:
                self._client = None

    async def send(
        self,
        mail: "Mail",
        recipients: list[str],
        sender: str | None = None,
    ) -> str:
        """
        Send a mail.

        The envelope is negotiated first, then the mail content is written
        onto the connection part by part while DATA is open.

        Args:
            mail: The mail to send.
            recipients: Envelope recipients (To, Cc and Bcc together).
            sender: Envelope sender. Defaults to the account address.

        Returns:
            The server's reply to the end of DATA.

        Raises:
            SendError: If sending fails at any stage.
        """
        if not self.is_connected:
            raise SendError("Not connected to SMTP server")

        if not recipients:
            raise SendError("No recipients specified")

        sender = sender or self.account.email

        try:
            logger.info(f"Sending email to {', '.join(recipients)}")
            await self._client.mail(sender)
            for recipient in recipients:
                await self._client.rcpt(recipient)

            response = await self._client.execute_command(b"DATA")
            if response.code != aiosmtplib.SMTPStatus.start_input:
                raise SendError(f"Server refused DATA: {response.code} {response.message}")
        except aiosmtplib.SMTPException as e:
            logger.error(f"Failed to send email: {e}")
            raise SendError(f"Failed to send email: {e}") from e

        try:
            response = await self._send_data(mail)
        except (MimeError, aiosmtplib.SMTPException, OSError) as e:
            # The server is mid-DATA and can't be brought back to a known
            # state, so the connection is dropped.
            logger.error(f"Failed to send email content: {e}")
            self._client.close()
            self._client = None
            raise SendError(f"Failed to send email: {e}") from e

        if response.code != aiosmtplib.SMTPStatus.completed:
            raise SendError(f"Server rejected message: {response.code} {response.message}")

        logger.info(f"Email sent successfully: {response.message}")
        return response.message

    async def _send_data(self, mail: "Mail") -> "aiosmtplib.SMTPResponse":
        """Write the mail content and the end-of-data marker, read the reply."""
        protocol = self._client.protocol
        writer = DataWriter(TransportSink(DotStuffingTransport(protocol)), self._encoder)
        writer.send(mail)

        # Content always ends with CRLF, so this is the "." line
        protocol.write(b".\r\n")
        return await protocol.read_response(timeout=self.TIMEOUT)


class SMTPError(Exception):
    """Base exception for SMTP operations."""
    pass


class SMTPConnectionError(SMTPError):
    """Raised when unable to connect to SMTP server."""
    pass


class SMTPAuthenticationError(SMTPError):
    """Raised when SMTP authentication fails."""
    pass


class SendError(SMTPError):
    """Raised when email sending fails."""
    pass
