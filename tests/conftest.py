# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the mailwire test suite.
# =============================================================================

import re

import pytest
import tempfile
from pathlib import Path

from mailwire.core import Account, Attachment, Mail
from mailwire.mime import ContentEncoder, DataWriter, EncodedPayloadCache, TransportSink

SAMPLE_HEADERS = (
    "FROM: Alice <alice@example.com>\r\n"
    "TO: bob@example.com\r\n"
    "SUBJECT: Test Subject\r\n"
)


class RecordingTransport:
    """Stands in for a network transport, keeping every write."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []
        self.closing = False

    def write(self, data: bytes) -> None:
        self.chunks.append(bytes(data))

    def is_closing(self) -> bool:
        return self.closing

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


def boundaries_in(output: bytes) -> list[str]:
    """Boundary tokens declared by envelope headers, in order."""
    return re.findall(r'boundary="([0-9A-F]{32})"', output.decode("utf-8"))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_account():
    """Create a sample Account for testing."""
    return Account(
        name="test",
        email="test@example.com",
        display_name="Test User",
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_security="starttls",
    )


@pytest.fixture
def transport():
    """A transport that records what's written to it."""
    return RecordingTransport()


@pytest.fixture
def cache():
    """A fresh encoded payload cache."""
    return EncodedPayloadCache()


@pytest.fixture
def writer(transport, cache):
    """A DataWriter writing to the recording transport."""
    return DataWriter(TransportSink(transport), ContentEncoder(cache))


@pytest.fixture
def text_mail():
    """A plain text mail without attachments."""
    return Mail(headers=SAMPLE_HEADERS, text="Hello")


@pytest.fixture
def sample_file(temp_dir):
    """A small binary file on disk."""
    path = temp_dir / "report.bin"
    path.write_bytes(bytes(range(256)) * 4)
    return path


@pytest.fixture
def html_alternative():
    """An HTML alternative to the plain text body."""
    return Attachment.html("<html><body><p>Hello <b>there</b></p></body></html>")
