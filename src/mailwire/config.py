# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating mailwire configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/mailwire/  (default: ~/.config/mailwire/)
#
# Files:
#   - config.toml: User configuration (accounts, encoder and output settings)
# =============================================================================

import os
import tomllib  # Built into Python 3.11+
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # For writing TOML (tomllib is read-only)

from mailwire.core import Account
from mailwire.core.account import DEFAULT_PORTS, SMTP_SECURITY_MODES
from mailwire.mime import EncodedPayloadCache


# Application identifier used in XDG paths
APP_NAME = "mailwire"

# Names accepted for [output] line_terminator
LINE_TERMINATORS = {
    "crlf": "\r\n",
    "lf": "\n",
    "none": "",
}


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory for mailwire.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/mailwire/
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base = Path(xdg_config)
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


# =============================================================================
# Configuration Data Structures
# =============================================================================

@dataclass
class EncoderConfig:
    """
    Configuration for the content encoder.

    Attributes:
        cache_enabled: Memoize encoded attachments across sends.
        cache_max_mb: Upper bound on the memory held by encoded payloads.
    """
    cache_enabled: bool = True
    cache_max_mb: float = 64.0


@dataclass
class OutputConfig:
    """
    Configuration for rendering mails to a stream (the `render` command).

    Attributes:
        line_terminator: Appended after every text unit written to the
                         stream: "crlf", "lf", or "none" for the exact
                         wire bytes.
    """
    line_terminator: str = "none"

    @property
    def terminator(self) -> str:
        """The actual terminator string."""
        return LINE_TERMINATORS[self.line_terminator]


@dataclass
class Config:
    """
    Main configuration container for mailwire.

    Attributes:
        default_account: Name of the account used when none is given.
        accounts: Configured sending accounts, keyed by name.
        encoder: Content encoder configuration.
        output: Stream rendering configuration.

    Usage:
        >>> config = Config.load()
        >>> print(config.accounts['personal'].smtp_host)
        'smtp.example.com'
    """
    default_account: str = ""
    accounts: dict[str, Account] = field(default_factory=dict)
    encoder: EncoderConfig = field(default_factory=EncoderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    def get_account(self, name: str | None = None) -> Account:
        """
        Look up an account by name, falling back to the default account.

        Raises:
            ConfigError: If no such account is configured.
        """
        name = name or self.default_account
        if name not in self.accounts:
            raise ConfigError(f"No account named {name!r} in configuration")
        return self.accounts[name]

    def make_cache(self) -> EncodedPayloadCache:
        """Create the encoded payload cache described by [encoder]."""
        return EncodedPayloadCache(
            max_mb=self.encoder.cache_max_mb,
            enabled=self.encoder.cache_enabled,
        )

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load configuration from the config file.

        If the config file doesn't exist, returns default configuration.

        Args:
            path: Config file to read. Defaults to the XDG location.

        Raises:
            ConfigError: If the config file exists but is invalid.
        """
        config_path = path or cls.config_file_path()

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file: {e}") from e

        return cls._from_dict(data)

    def save(self, path: Path | None = None) -> None:
        """
        Save configuration to the config file.

        Creates the config directory if it doesn't exist.
        """
        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self._to_dict(), f)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Create a Config object from a dictionary (parsed TOML).

        Raises:
            ConfigError: If a value is out of range.
        """
        config = cls()

        general = data.get("general", {})
        config.default_account = general.get("default_account", "")

        encoder = data.get("encoder", {})
        config.encoder = EncoderConfig(
            cache_enabled=encoder.get("cache_enabled", True),
            cache_max_mb=encoder.get("cache_max_mb", 64.0),
        )
        if config.encoder.cache_max_mb < 0:
            raise ConfigError("encoder.cache_max_mb must not be negative")

        output = data.get("output", {})
        config.output = OutputConfig(
            line_terminator=output.get("line_terminator", "none"),
        )
        if config.output.line_terminator not in LINE_TERMINATORS:
            raise ConfigError(
                f"output.line_terminator must be one of {', '.join(LINE_TERMINATORS)}"
            )

        # Accounts - each key under [accounts] is an account name
        accounts_data = data.get("accounts", {})
        for name, acct_data in accounts_data.items():
            security = acct_data.get("smtp_security", "starttls")
            if security not in SMTP_SECURITY_MODES:
                raise ConfigError(
                    f"accounts.{name}.smtp_security must be one of "
                    f"{', '.join(SMTP_SECURITY_MODES)}"
                )
            config.accounts[name] = Account(
                name=name,
                email=acct_data.get("email", ""),
                display_name=acct_data.get("display_name", ""),
                smtp_host=acct_data.get("smtp_host", ""),
                smtp_port=acct_data.get("smtp_port", DEFAULT_PORTS[security]),
                smtp_security=security,
                authenticate=acct_data.get("authenticate", True),
            )

        return config

    def _to_dict(self) -> dict[str, Any]:
        """
        Convert Config to a dictionary for TOML serialization.
        """
        data: dict[str, Any] = {}

        data["general"] = {
            "default_account": self.default_account,
        }

        data["encoder"] = {
            "cache_enabled": self.encoder.cache_enabled,
            "cache_max_mb": self.encoder.cache_max_mb,
        }

        data["output"] = {
            "line_terminator": self.output.line_terminator,
        }

        data["accounts"] = {}
        for name, account in self.accounts.items():
            data["accounts"][name] = {
                "email": account.email,
                "display_name": account.display_name,
                "smtp_host": account.smtp_host,
                "smtp_port": account.smtp_port,
                "smtp_security": account.smtp_security,
                "authenticate": account.authenticate,
            }

        return data


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(Exception):
    """Raised when there's an error loading or parsing configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths() -> None:
    """
    Print configuration paths for debugging.
    """
    print(f"Config:       {get_xdg_config_home()}")
    print(f"Config file:  {Config.config_file_path()}")
