# =============================================================================
# SMTP Client Tests
# =============================================================================
# aiosmtplib.SMTP is replaced with a fake that records the session, so
# these run without a server.
# =============================================================================

import asyncio
import email
import email.policy

import aiosmtplib
import keyring
import pytest

from mailwire.core import Attachment, Mail
from mailwire.smtp import (
    DotStuffingTransport,
    SendError,
    SMTPAuthenticationError,
    SMTPClient,
    SMTPConnectionError,
)

from conftest import RecordingTransport


class FakeProtocol:
    def __init__(self, final_reply: aiosmtplib.SMTPResponse) -> None:
        self.sent = RecordingTransport()
        self.final_reply = final_reply

    def write(self, data: bytes) -> None:
        self.sent.write(data)

    async def read_response(self, timeout=None) -> aiosmtplib.SMTPResponse:
        return self.final_reply


class FakeSMTP:
    """Records the SMTP conversation instead of talking to a server."""

    instances: list["FakeSMTP"] = []
    data_reply = aiosmtplib.SMTPResponse(354, "Start mail input")
    final_reply = aiosmtplib.SMTPResponse(250, "OK queued as 12345")
    fail_connect = False

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.is_connected = False
        self.commands: list[tuple] = []
        self.protocol = FakeProtocol(self.final_reply)
        FakeSMTP.instances.append(self)

    async def connect(self) -> None:
        if self.fail_connect:
            raise aiosmtplib.SMTPConnectError("Connection refused")
        self.is_connected = True

    async def login(self, username: str, password: str) -> None:
        self.commands.append(("login", username, password))

    async def mail(self, sender: str) -> None:
        self.commands.append(("mail", sender))

    async def rcpt(self, recipient: str) -> None:
        self.commands.append(("rcpt", recipient))

    async def execute_command(self, *args: bytes) -> aiosmtplib.SMTPResponse:
        self.commands.append(("execute",) + args)
        return self.data_reply

    async def quit(self) -> None:
        self.is_connected = False

    def close(self) -> None:
        self.is_connected = False


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(aiosmtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(keyring, "get_password", lambda service, user: "secret")
    return FakeSMTP


def connected_client(account) -> SMTPClient:
    client = SMTPClient(account)
    asyncio.run(client.connect())
    return client


class TestDotStuffingTransport:
    def test_leading_dots_are_doubled(self):
        inner = RecordingTransport()
        transport = DotStuffingTransport(inner)
        transport.write(b".starts\r\nmiddle\r\n.again\r\n")

        assert inner.data == b"..starts\r\nmiddle\r\n..again\r\n"

    def test_line_start_tracked_across_writes(self):
        inner = RecordingTransport()
        transport = DotStuffingTransport(inner)
        transport.write(b"line\r\n")
        transport.write(b".next")
        transport.write(b".not a line start\r\n")

        assert inner.data == b"line\r\n..next.not a line start\r\n"

    def test_delegates_is_closing(self):
        inner = RecordingTransport()
        transport = DotStuffingTransport(inner)
        assert not transport.is_closing()

        inner.closing = True
        assert transport.is_closing()


class TestSMTPClient:
    def test_connect_and_authenticate(self, fake_smtp, sample_account):
        client = connected_client(sample_account)

        assert client.is_connected
        smtp = fake_smtp.instances[0]
        assert smtp.kwargs["hostname"] == "smtp.example.com"
        assert smtp.kwargs["start_tls"] is True
        assert smtp.kwargs["use_tls"] is False
        assert ("login", "test@example.com", "secret") in smtp.commands

    def test_missing_password(self, fake_smtp, sample_account, monkeypatch):
        monkeypatch.setattr(keyring, "get_password", lambda service, user: None)
        client = SMTPClient(sample_account)

        with pytest.raises(SMTPAuthenticationError):
            asyncio.run(client.connect())
        assert not client.is_connected

    def test_no_authentication_for_relays(self, fake_smtp, sample_account):
        sample_account.authenticate = False
        connected_client(sample_account)

        assert not any(cmd[0] == "login" for cmd in fake_smtp.instances[0].commands)

    def test_connection_failure(self, fake_smtp, sample_account, monkeypatch):
        monkeypatch.setattr(FakeSMTP, "fail_connect", True)
        client = SMTPClient(sample_account)

        with pytest.raises(SMTPConnectionError):
            asyncio.run(client.connect())

    def test_send_streams_mail_during_data(self, fake_smtp, sample_account, sample_file):
        client = connected_client(sample_account)
        mail = Mail.compose(
            sender="test@example.com",
            to=["bob@example.com"],
            subject="Report",
            text="See attached.\r\n.hidden line",
            attachments=[Attachment.file(str(sample_file))],
        )

        reply = asyncio.run(client.send(mail, ["bob@example.com", "carol@example.com"]))

        assert reply == "OK queued as 12345"
        smtp = fake_smtp.instances[0]
        assert smtp.commands[-4:] == [
            ("mail", "test@example.com"),
            ("rcpt", "bob@example.com"),
            ("rcpt", "carol@example.com"),
            ("execute", b"DATA"),
        ]

        data = smtp.protocol.sent.data
        assert data.endswith(b"\r\n.\r\n")
        assert b"\r\n..hidden line" in data

        message = email.message_from_bytes(data[:-3], policy=email.policy.default)
        assert message["Subject"] == "Report"
        text_part, file_part = message.iter_parts()
        assert file_part.get_payload(decode=True) == sample_file.read_bytes()

    def test_send_shares_cache(self, fake_smtp, sample_account, sample_file):
        client = connected_client(sample_account)
        mail = Mail(text="x", attachments=[Attachment.file(str(sample_file))])
        asyncio.run(client.send(mail, ["bob@example.com"]))

        assert f"file:{sample_file}" in client.cache

    def test_send_requires_connection(self, sample_account):
        client = SMTPClient(sample_account)

        with pytest.raises(SendError):
            asyncio.run(client.send(Mail(text="x"), ["bob@example.com"]))

    def test_send_requires_recipients(self, fake_smtp, sample_account):
        client = connected_client(sample_account)

        with pytest.raises(SendError):
            asyncio.run(client.send(Mail(text="x"), []))

    def test_data_refused(self, fake_smtp, sample_account, monkeypatch):
        monkeypatch.setattr(FakeSMTP, "data_reply", aiosmtplib.SMTPResponse(554, "No"))
        client = connected_client(sample_account)

        with pytest.raises(SendError):
            asyncio.run(client.send(Mail(text="x"), ["bob@example.com"]))
        assert fake_smtp.instances[0].protocol.sent.data == b""

    def test_missing_attachment_drops_connection(self, fake_smtp, sample_account, temp_dir):
        client = connected_client(sample_account)
        mail = Mail(text="x", attachments=[Attachment.file(str(temp_dir / "missing.pdf"))])

        with pytest.raises(SendError) as exc_info:
            asyncio.run(client.send(mail, ["bob@example.com"]))

        assert "missing.pdf" in str(exc_info.value)
        assert not client.is_connected
        assert not fake_smtp.instances[0].protocol.sent.data.endswith(b"\r\n.\r\n")

    def test_message_rejected(self, fake_smtp, sample_account, monkeypatch):
        monkeypatch.setattr(FakeSMTP, "final_reply", aiosmtplib.SMTPResponse(550, "Rejected"))
        client = connected_client(sample_account)

        with pytest.raises(SendError):
            asyncio.run(client.send(Mail(text="x"), ["bob@example.com"]))

    def test_disconnect(self, fake_smtp, sample_account):
        client = connected_client(sample_account)
        asyncio.run(client.disconnect())

        assert not client.is_connected
