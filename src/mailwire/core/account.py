# =============================================================================
# Sending Account
# =============================================================================
# One SMTP server plus the address mail is sent as. Loaded from the
# [accounts.<name>] tables of config.toml.
#
# The password never lives here; SMTPClient fetches it from the system
# keyring under keyring_service when the account authenticates.
# =============================================================================

from dataclasses import dataclass
from typing import Any

# Valid values for Account.smtp_security
SMTP_SECURITY_MODES = ("ssl", "starttls", "none")

# Port used when a config table leaves smtp_port out
DEFAULT_PORTS = {"ssl": 465, "starttls": 587, "none": 25}


@dataclass
class Account:
    """
    An SMTP account mail can be sent from.

    Attributes:
        name: Key of the account in config.toml, also part of the keyring
              service name.
        email: Envelope sender (MAIL FROM) and login name.
        display_name: Falls back to the address when empty.
        smtp_host: SMTP server hostname.
        smtp_port: SMTP server port.
        smtp_security: "ssl" (implicit TLS), "starttls" or "none".
        authenticate: Log in before sending. Local relays usually accept
                      mail without it.

    Example:
        >>> account = Account(name="work", email="me@work.example",
        ...                   smtp_host="smtp.work.example")
        >>> account.connection_options()["start_tls"]
        True
    """

    name: str
    email: str
    display_name: str = ""

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_security: str = "starttls"
    authenticate: bool = True

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.email

    @property
    def keyring_service(self) -> str:
        """Keyring service the SMTP password is stored under."""
        return f"mailwire:{self.name}"

    @property
    def keyring_hint(self) -> str:
        """Command that stores this account's password."""
        return f"keyring set {self.keyring_service} {self.email}"

    def connection_options(self) -> dict[str, Any]:
        """Keyword arguments for aiosmtplib.SMTP."""
        return {
            "hostname": self.smtp_host,
            "port": self.smtp_port,
            "use_tls": self.smtp_security == "ssl",
            "start_tls": self.smtp_security == "starttls",
        }

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
