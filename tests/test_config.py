# =============================================================================
# Configuration Tests
# =============================================================================

import pytest

from mailwire.config import Config, ConfigError, get_xdg_config_home


def test_xdg_config_home_respects_env(monkeypatch, temp_dir):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir))

    assert get_xdg_config_home() == temp_dir / "mailwire"
    assert Config.config_file_path() == temp_dir / "mailwire" / "config.toml"


def test_missing_file_gives_defaults(temp_dir):
    config = Config.load(temp_dir / "absent.toml")

    assert config.accounts == {}
    assert config.encoder.cache_enabled
    assert config.output.terminator == ""


def test_load(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(
        """
[general]
default_account = "work"

[encoder]
cache_enabled = false
cache_max_mb = 8

[output]
line_terminator = "crlf"

[accounts.work]
email = "me@work.example"
smtp_host = "smtp.work.example"
smtp_port = 465
smtp_security = "ssl"
"""
    )

    config = Config.load(path)

    assert config.default_account == "work"
    assert config.output.terminator == "\r\n"
    account = config.get_account()
    assert account.email == "me@work.example"
    assert account.smtp_port == 465
    assert account.smtp_security == "ssl"
    assert account.display_name == "me@work.example"

    cache = config.make_cache()
    assert not cache.enabled


def test_round_trip(temp_dir, sample_account):
    config = Config(default_account="test", accounts={"test": sample_account})
    config.encoder.cache_max_mb = 12.5
    path = temp_dir / "nested" / "config.toml"
    config.save(path)

    loaded = Config.load(path)

    assert loaded.get_account("test") == sample_account
    assert loaded.encoder.cache_max_mb == 12.5


def test_invalid_toml(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text("[general\n")

    with pytest.raises(ConfigError):
        Config.load(path)


@pytest.mark.parametrize(
    "content",
    [
        '[output]\nline_terminator = "crcr"\n',
        "[encoder]\ncache_max_mb = -1\n",
        '[accounts.x]\nemail = "x@example.com"\nsmtp_security = "tls13"\n',
    ],
)
def test_invalid_values(temp_dir, content):
    path = temp_dir / "config.toml"
    path.write_text(content)

    with pytest.raises(ConfigError):
        Config.load(path)


def test_unknown_account(sample_account):
    config = Config(accounts={"test": sample_account})

    with pytest.raises(ConfigError):
        config.get_account("other")


@pytest.mark.parametrize("security, port", [("ssl", 465), ("starttls", 587), ("none", 25)])
def test_port_defaults_follow_security(temp_dir, security, port):
    path = temp_dir / "config.toml"
    path.write_text(f'[accounts.x]\nemail = "x@example.com"\nsmtp_security = "{security}"\n')

    assert Config.load(path).get_account("x").smtp_port == port
