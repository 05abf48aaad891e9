"""
Unit Tests for Config
"""

from pathlib import Path

import pytest

from sitehealth.util.config import DEFAULT_USER_AGENT, Config

ENV_VARS = (
    'PAGESPEED_API_KEY', 'USER_AGENT', 'DNS_TIMEOUT', 'EMAIL_DNS_TIMEOUT', 'CT_TIMEOUT',
    'TLS_TIMEOUT', 'HTTP_TIMEOUT', 'AVAILABILITY_TIMEOUT', 'PAGESPEED_TIMEOUT',
    'CT_MAX_RECORDS', 'EXPIRY_WARNING_DAYS', 'OUT_DIR', 'LOG_LEVEL',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so monkeypatch also undoes whatever load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults(tmp_path):
    config = Config(env_file=tmp_path / '.env')

    assert config.pagespeed_api_key is None
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.dns_timeout == 3.0
    assert config.email_dns_timeout == 5.0
    assert config.ct_timeout == 10.0
    assert config.tls_timeout == 5.0
    assert config.http_timeout == 10.0
    assert config.availability_timeout == 5.0
    assert config.pagespeed_timeout == 30.0
    assert config.ct_max_records == 50
    assert config.expiry_warning_days == 30
    assert config.out_dir == Path('out')
    assert config.log_level == 'INFO'


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv('PAGESPEED_API_KEY', 'secret-key')
    monkeypatch.setenv('DNS_TIMEOUT', '1.5')
    monkeypatch.setenv('CT_MAX_RECORDS', '20')
    monkeypatch.setenv('LOG_LEVEL', 'debug')

    config = Config(env_file=tmp_path / '.env')

    assert config.pagespeed_api_key == 'secret-key'
    assert config.dns_timeout == 1.5
    assert config.ct_max_records == 20
    assert config.log_level == 'DEBUG'


def test_env_file_is_loaded(tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("USER_AGENT=TestBot/2.0\nPAGESPEED_TIMEOUT=45\n")

    config = Config(env_file=env_file)

    assert config.user_agent == 'TestBot/2.0'
    assert config.pagespeed_timeout == 45.0


def test_empty_api_key_is_unset(tmp_path, monkeypatch):
    monkeypatch.setenv('PAGESPEED_API_KEY', '')
    assert Config(env_file=tmp_path / '.env').pagespeed_api_key is None


@pytest.mark.parametrize("name,value", [
    ('DNS_TIMEOUT', 'fast'),
    ('HTTP_TIMEOUT', '0'),
    ('TLS_TIMEOUT', '-2'),
    ('CT_MAX_RECORDS', 'many'),
])
def test_bad_values_raise(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Config(env_file=tmp_path / '.env')


def test_api_key_never_in_dict_or_repr(tmp_path, monkeypatch):
    monkeypatch.setenv('PAGESPEED_API_KEY', 'secret-key')
    config = Config(env_file=tmp_path / '.env')

    assert 'secret-key' not in str(config.to_dict())
    assert 'secret-key' not in repr(config)
    assert config.to_dict()['pagespeed_api_key_set'] is True
