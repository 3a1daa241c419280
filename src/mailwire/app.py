# =============================================================================
# mailwire Command Line
# =============================================================================
# Two commands around the MIME writer:
#
#   mailwire render message.toml [-o out.eml]   Write the MIME stream to a
#                                               file or stdout
#   mailwire send message.toml [--account NAME] Send it over SMTP
#
# A message file describes one mail:
#
#   from = "alice@example.com"
#   to = ["bob@example.com"]
#   subject = "Report"
#   text = "See attached."
#   html = "<p>See <img src='cid:logo'> attached.</p>"   # optional
#
#   [[attachments]]
#   path = "report.pdf"                 # or: html = "...", or: pgp = "..."
#
#   [[attachments.related]]             # parts sent with the one above
#   path = "logo.png"
#   inline = true
#   headers = { "CONTENT-ID" = "<logo>" }
#
# Relative paths are resolved against the message file's directory.
# =============================================================================

import argparse
import asyncio
import base64
import logging
import sys
import tomllib
from pathlib import Path
from typing import Any

from mailwire import __app_name__, __version__
from mailwire.config import Config, ConfigError, print_paths
from mailwire.core import Attachment, Mail
from mailwire.mime import ContentEncoder, DataWriter, MimeError, StreamSink
from mailwire.smtp import SMTPClient, SMTPError

logger = logging.getLogger(__name__)


# =============================================================================
# Message Files
# =============================================================================

def load_message_file(path: Path) -> tuple[Mail, list[str]]:
    """
    Build a Mail from a TOML message file.

    Returns:
        The mail and its envelope recipients (to + cc + bcc).

    Raises:
        MessageFileError: If the file can't be read or is malformed.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise MessageFileError(f"Can't read message file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise MessageFileError(f"Invalid message file {path}: {e}") from e

    sender = data.get("from")
    if not sender:
        raise MessageFileError(f"{path}: 'from' is required")

    to = _address_list(data, "to", path)
    cc = _address_list(data, "cc", path)
    bcc = _address_list(data, "bcc", path)

    base_dir = path.parent
    attachments = [_load_attachment(entry, base_dir) for entry in data.get("attachments", [])]
    if data.get("html"):
        # Goes first so it's picked as the alternative
        attachments.insert(0, Attachment.html(data["html"]))

    mail = Mail.compose(
        sender=sender,
        to=to,
        sender_name=data.get("from_name", ""),
        cc=cc,
        subject=data.get("subject", ""),
        text=data.get("text", ""),
        attachments=attachments,
        pgp=data.get("pgp", False),
        additional_headers=data.get("headers"),
    )
    return mail, to + cc + bcc


def _address_list(data: dict[str, Any], key: str, path: Path) -> list[str]:
    """Read a list of addresses, rejecting anything that isn't a list of strings."""
    addresses = data.get(key, [])
    if not isinstance(addresses, list) or not all(isinstance(a, str) for a in addresses):
        raise MessageFileError(f"{path}: '{key}' must be a list of addresses")
    return addresses


def _load_attachment(entry: dict[str, Any], base_dir: Path) -> Attachment:
    """Build one attachment (and its related parts) from a message file entry."""
    related = [_load_attachment(sub, base_dir) for sub in entry.get("related", [])]
    headers = entry.get("headers")
    inline = entry.get("inline", False)

    if "path" in entry:
        return Attachment.file(
            str(base_dir / entry["path"]),
            mime_type=entry.get("mime_type"),
            name=entry.get("name"),
            inline=inline,
            additional_headers=headers,
            related=related,
        )
    if "html" in entry:
        return Attachment.html(
            entry["html"],
            alternative=entry.get("alternative", False),
            additional_headers=headers,
            related=related,
        )
    if "pgp" in entry:
        return Attachment.pgp(
            entry["pgp"],
            mime_type=entry.get("mime_type", "application/octet-stream"),
            name=entry.get("name", "encrypted.asc"),
            inline=entry.get("inline", True),
            additional_headers=headers,
        )
    if "base64" in entry:
        try:
            data = base64.b64decode(entry["base64"], validate=True)
        except ValueError as e:
            raise MessageFileError(f"Attachment {entry.get('name', '')!r}: bad base64 data") from e
        return Attachment.data(
            data,
            mime_type=entry.get("mime_type", "application/octet-stream"),
            name=entry.get("name", ""),
            inline=inline,
            additional_headers=headers,
            related=related,
        )

    raise MessageFileError(
        "Attachment entries need one of: path, html, pgp, base64"
    )


# =============================================================================
# Commands
# =============================================================================

def render(args: argparse.Namespace, config: Config) -> int:
    """Write the MIME stream of a message file to a file or stdout."""
    mail, _ = load_message_file(args.message)
    encoder = ContentEncoder(config.make_cache())

    if args.output:
        with open(args.output, "wb") as f:
            sink = StreamSink(f, config.output.terminator)
            DataWriter(sink, encoder).send(mail, include_headers=not args.no_headers)
        logger.info(f"Wrote {args.output}")
    else:
        sink = StreamSink(sys.stdout.buffer, config.output.terminator)
        DataWriter(sink, encoder).send(mail, include_headers=not args.no_headers)
        sys.stdout.buffer.flush()

    return 0


async def send(args: argparse.Namespace, config: Config) -> int:
    """Send a message file through the configured SMTP account."""
    account = config.get_account(args.account)
    mail, recipients = load_message_file(args.message)

    client = SMTPClient(account, cache=config.make_cache())
    await client.connect()
    try:
        reply = await client.send(mail, recipients)
    finally:
        await client.disconnect()

    print(f"Sent: {reply}")
    return 0


# =============================================================================
# CLI Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="mailwire: stream MIME mail onto SMTP connections",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    commands = parser.add_subparsers(dest="command")

    render_cmd = commands.add_parser("render", help="Write a message as MIME")
    render_cmd.add_argument("message", type=Path, help="TOML message file")
    render_cmd.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    render_cmd.add_argument(
        "--no-headers",
        action="store_true",
        help="Leave out the top-level header block",
    )

    send_cmd = commands.add_parser("send", help="Send a message over SMTP")
    send_cmd.add_argument("message", type=Path, help="TOML message file")
    send_cmd.add_argument("--account", help="Account name (default: default_account)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for mailwire.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    if args.paths:
        print_paths()
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = Config.load(args.config)
        if args.command == "render":
            return render(args, config)
        return asyncio.run(send(args, config))
    except (ConfigError, MessageFileError, MimeError, SMTPError) as e:
        print(f"{__app_name__}: {e}", file=sys.stderr)
        return 1


# =============================================================================
# Exceptions
# =============================================================================

class MessageFileError(Exception):
    """Raised when a message file can't be turned into a Mail."""
    pass


if __name__ == "__main__":
    sys.exit(main())
