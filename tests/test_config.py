"""
Test cases for settings, validation helpers and log sanitization
"""

import logging

import pytest

from portfolio_pwa.config import DEFAULT_STATIC_ASSETS, Settings
from portfolio_pwa.utils.errors import ConfigurationError, ValidationError
from portfolio_pwa.utils.logging_config import SecureLogFormatter
from portfolio_pwa.utils.validation import SecurityValidator


class TestSettings:
    """Test cases for environment-driven settings"""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.origin is None
        assert settings.cache_version == '3.0.0'
        assert settings.static_assets == DEFAULT_STATIC_ASSETS
        assert settings.cache_names.primary == 'portfolio-v3.0.0'
        assert settings.max_retries == 3
        assert settings.initial_delay == 1.0
        assert settings.fetch_timeout == 30
        assert settings.development is True

    def test_from_env(self):
        settings = Settings.from_env({
            'PWA_ORIGIN': 'https://Example.com/',
            'PWA_CACHE_VERSION': '4.1.0',
            'PWA_STATIC_ASSETS': '/, /app.js,/app.js',
            'PWA_MAX_RETRIES': '5',
            'PWA_INITIAL_DELAY': '0.25',
            'PWA_ENV': 'production',
        })

        assert settings.origin == 'https://example.com'
        assert settings.cache_names.runtime == 'runtime-v4.1.0'
        assert settings.static_assets == ['/', '/app.js']
        assert settings.max_retries == 5
        assert settings.initial_delay == 0.25
        assert settings.development is False

    @pytest.mark.parametrize("env", [
        {'PWA_ORIGIN': 'ftp://example.com'},
        {'PWA_MAX_RETRIES': 'three'},
        {'PWA_MAX_RETRIES': '-1'},
        {'PWA_FETCH_TIMEOUT': '0'},
        {'PWA_OFFLINE_URL': 'offline.html'},
        {'PWA_ENV': 'staging'},
        {'PWA_CACHE_VERSION': ''},
    ])
    def test_invalid_values(self, env):
        with pytest.raises(ConfigurationError):
            Settings.from_env(env)

    def test_require_origin(self):
        with pytest.raises(ConfigurationError):
            Settings.from_env({}).require_origin()


class TestSecurityValidator:
    """Test cases for sanitization helpers"""

    def test_api_key_param_masked(self):
        text = "POST https://host/v1/models/x:generateContent?key=abc123&alt=json"
        clean = SecurityValidator.sanitize_api_key_in_text(text)

        assert 'abc123' not in clean
        assert 'alt=json' in clean

    def test_google_key_masked_anywhere(self):
        clean = SecurityValidator.sanitize_api_key_in_text("key AIzaSyD-0123456789abcdefghijk leaked")
        assert 'AIza' not in clean

    def test_error_message_strips_paths(self):
        clean = SecurityValidator.sanitize_error_message('File "/srv/app/x.py", line 3 at 0xdeadbeef')

        assert '/srv/app' not in clean
        assert '0xdeadbeef' not in clean

    def test_validate_history(self):
        history = SecurityValidator.validate_history([{'role': 'user', 'content': 'hi'}])
        assert history == [{'role': 'user', 'content': 'hi'}]

        with pytest.raises(ValidationError):
            SecurityValidator.validate_history([{'role': 'system', 'content': 'x'}])

    def test_asset_paths_must_be_absolute(self):
        with pytest.raises(ValidationError):
            SecurityValidator.validate_asset_list(['style.css'])


class TestSecureLogFormatter:
    """Test cases for log record sanitization"""

    def test_masks_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv('GEMINI_API_KEY', 'plain-secret-value')
        formatter = SecureLogFormatter('%(message)s')
        record = logging.LogRecord('t', logging.INFO, __file__, 1,
                                   'calling with %s', ('plain-secret-value',), None)

        assert 'plain-secret-value' not in formatter.format(record)
