"""
Validation and sanitization utilities for portfolio_pwa
"""

import html
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from .errors import ValidationError


class SecurityValidator:
    """Security validation and sanitization utilities"""

    # API keys passed as query parameters (e.g. ?key=AIza...)
    API_KEY_PARAM_PATTERN = re.compile(r'([?&](?:key|api_key|apikey|token)=)[^&\s#]+', re.IGNORECASE)
    # Google-style API keys appearing anywhere in text
    API_KEY_PATTERN = re.compile(r'AIza[0-9A-Za-z_\-]{20,}')
    BEARER_PATTERN = re.compile(r'(Bearer\s+)[A-Za-z0-9._\-]+', re.IGNORECASE)

    ALLOWED_SCHEMES = {'http', 'https'}
    ALLOWED_ENVIRONMENTS = {'development', 'production', 'test'}
    ALLOWED_CHAT_ROLES = {'user', 'bot', 'model'}

    MAX_CHAT_MESSAGE_LENGTH = 3000
    MAX_HISTORY_ITEMS = 20

    @classmethod
    def validate_origin(cls, origin: str) -> str:
        """Validate and normalize an origin (scheme://host[:port])"""
        if not origin or not isinstance(origin, str):
            raise ValidationError("Origin must be a non-empty string", field="origin")

        parts = urlsplit(origin.strip())
        if parts.scheme not in cls.ALLOWED_SCHEMES or not parts.netloc:
            raise ValidationError(
                f"Invalid origin: {origin}. Must look like https://example.com",
                field="origin"
            )

        return f"{parts.scheme}://{parts.netloc}".lower()

    @classmethod
    def validate_path(cls, path: str, field: str = "path") -> str:
        """Validate an absolute URL path such as /offline.html"""
        if not isinstance(path, str) or not path.startswith('/'):
            raise ValidationError(f"Path must start with '/': {path!r}", field=field)
        return path

    @classmethod
    def validate_asset_list(cls, assets: List[str]) -> List[str]:
        """Validate the static asset manifest, dropping duplicates but keeping order"""
        if not isinstance(assets, (list, tuple)) or not assets:
            raise ValidationError("Static asset list must be a non-empty list", field="static_assets")

        seen = []
        for asset in assets:
            asset = cls.validate_path(asset.strip() if isinstance(asset, str) else asset,
                                      field="static_assets")
            if asset not in seen:
                seen.append(asset)
        return seen

    @classmethod
    def validate_environment(cls, environment: str) -> str:
        """Validate deployment environment name"""
        env = (environment or '').strip().lower()
        if env not in cls.ALLOWED_ENVIRONMENTS:
            raise ValidationError(
                f"Invalid environment. Must be one of: {', '.join(sorted(cls.ALLOWED_ENVIRONMENTS))}",
                field="environment"
            )
        return env

    @classmethod
    def sanitize_input(cls, text: str) -> str:
        """Escape markup in user supplied text"""
        if not isinstance(text, str):
            return ''
        return html.escape(text.strip(), quote=True)

    @classmethod
    def validate_chat_message(cls, message: Any) -> str:
        """Validate and sanitize a chat message"""
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Please provide a valid message.", field="message")

        trimmed = message.strip()
        if len(trimmed) > cls.MAX_CHAT_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message too long. Maximum: {cls.MAX_CHAT_MESSAGE_LENGTH} characters",
                field="message"
            )

        return cls.sanitize_input(trimmed)

    @classmethod
    def validate_history(cls, history: Optional[List[Dict[str, Any]]]) -> List[Dict[str, str]]:
        """Validate chat history entries of the form {'role': ..., 'content': ...}"""
        if history is None:
            return []
        if not isinstance(history, list):
            raise ValidationError("History must be a list", field="history")

        sanitized = []
        for item in history[-cls.MAX_HISTORY_ITEMS:]:
            if not isinstance(item, dict):
                raise ValidationError("History entries must be objects", field="history")
            role = item.get('role')
            content = item.get('content')
            if role not in cls.ALLOWED_CHAT_ROLES:
                raise ValidationError(f"Invalid history role: {role}", field="history")
            if not isinstance(content, str):
                raise ValidationError("History content must be a string", field="history")
            sanitized.append({'role': role, 'content': content})

        return sanitized

    @classmethod
    def sanitize_api_key_in_text(cls, text: str, secret: str = None) -> str:
        """Remove/mask API keys from text for logging"""
        if not isinstance(text, str):
            text = str(text)

        if secret:
            text = text.replace(secret, '[KEY_REDACTED]')

        text = cls.API_KEY_PARAM_PATTERN.sub(r'\1[KEY_REDACTED]', text)
        text = cls.API_KEY_PATTERN.sub('[KEY_REDACTED]', text)
        return cls.BEARER_PATTERN.sub(r'\1[KEY_REDACTED]', text)

    @classmethod
    def sanitize_log_message(cls, message: str, secret: str = None) -> str:
        """Sanitize log messages by removing sensitive data"""
        return cls.sanitize_api_key_in_text(message, secret)

    @classmethod
    def sanitize_error_message(cls, message: str) -> str:
        """
        Sanitize error messages for safe external exposure.

        Removes API keys, file paths, stack trace locations and memory
        addresses, and truncates long messages.

        Args:
            message: Raw error message

        Returns:
            Sanitized error message safe for client exposure
        """
        if not isinstance(message, str):
            message = str(message)

        sanitized = cls.sanitize_api_key_in_text(message)

        # Unix and Windows file paths
        sanitized = re.sub(r'(?<![\w:])/(?:[a-zA-Z0-9_.\-]+/)+[a-zA-Z0-9_.\-]+', '[PATH]', sanitized)
        sanitized = re.sub(r'[A-Za-z]:\\[a-zA-Z0-9_\\.\-]+', '[PATH]', sanitized)

        sanitized = re.sub(r'File "[^"]+", line \d+', '[LOCATION]', sanitized)
        sanitized = re.sub(r'0x[0-9a-fA-F]+', '[ADDR]', sanitized)

        max_length = 500
        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length] + '... [truncated]'

        return sanitized
