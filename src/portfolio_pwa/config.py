"""
Environment-driven settings for portfolio_pwa
"""

import os
import tempfile
from typing import Dict, List, Optional

from .cache.storage import CacheNames
from .utils.errors import ConfigurationError, ValidationError
from .utils.validation import SecurityValidator

DEFAULT_CACHE_VERSION = '3.0.0'

# Assets that must be present in the primary store after install
DEFAULT_STATIC_ASSETS = [
    '/',
    '/index.html',
    '/style.css',
    '/script.js',
    '/manifest.json',
    '/offline.html',
    '/js/modules/animations-gsap.js',
    '/js/modules/skill-chart.js',
    '/js/modules/portfolio-api.js',
    '/js/modules/portfolio-ui.js',
    '/js/modules/portfolio-forms.js',
    '/js/modules/error-handler.js',
]


class Settings:
    """Runtime configuration of the offline layer and outbound client"""

    def __init__(self,
                 origin: str = None,
                 cache_version: str = DEFAULT_CACHE_VERSION,
                 api_prefix: str = '/api',
                 offline_url: str = '/offline.html',
                 static_assets: List[str] = None,
                 fetch_timeout: float = 30,
                 max_retries: int = 3,
                 initial_delay: float = 1.0,
                 cache_dir: str = None,
                 pending_dir: str = None,
                 log_level: str = 'INFO',
                 log_file: str = None,
                 environment: str = 'development',
                 gemini_api_key: str = None,
                 chat_model: str = 'gemini-2.5-flash'):
        try:
            self.origin = SecurityValidator.validate_origin(origin) if origin else None
            self.api_prefix = SecurityValidator.validate_path(api_prefix, 'api_prefix')
            self.offline_url = SecurityValidator.validate_path(offline_url, 'offline_url')
            self.static_assets = SecurityValidator.validate_asset_list(
                static_assets if static_assets is not None else DEFAULT_STATIC_ASSETS
            )
            self.environment = SecurityValidator.validate_environment(environment)
        except ValidationError as e:
            raise ConfigurationError(str(e), e.details)

        if not cache_version:
            raise ConfigurationError("Cache version must not be empty")
        if fetch_timeout <= 0:
            raise ConfigurationError("Fetch timeout must be positive")
        if max_retries < 0:
            raise ConfigurationError("Max retries must not be negative")
        if initial_delay < 0:
            raise ConfigurationError("Initial delay must not be negative")

        self.cache_version = cache_version
        self.fetch_timeout = fetch_timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.cache_dir = cache_dir
        self.pending_dir = pending_dir or os.path.join(tempfile.gettempdir(), 'portfolio_pwa_pending')
        self.log_level = log_level
        self.log_file = log_file
        self.gemini_api_key = gemini_api_key
        self.chat_model = chat_model

    @classmethod
    def from_env(cls, environ: Dict[str, str] = None) -> 'Settings':
        """Load settings from PWA_* environment variables"""
        env = os.environ if environ is None else environ

        assets = env.get('PWA_STATIC_ASSETS')
        static_assets = [a.strip() for a in assets.split(',') if a.strip()] if assets else None

        return cls(
            origin=env.get('PWA_ORIGIN'),
            cache_version=env.get('PWA_CACHE_VERSION', DEFAULT_CACHE_VERSION),
            api_prefix=env.get('PWA_API_PREFIX', '/api'),
            offline_url=env.get('PWA_OFFLINE_URL', '/offline.html'),
            static_assets=static_assets,
            fetch_timeout=_parse_number(env, 'PWA_FETCH_TIMEOUT', 30, float),
            max_retries=_parse_number(env, 'PWA_MAX_RETRIES', 3, int),
            initial_delay=_parse_number(env, 'PWA_INITIAL_DELAY', 1.0, float),
            cache_dir=env.get('PWA_CACHE_DIR'),
            pending_dir=env.get('PWA_PENDING_DIR'),
            log_level=env.get('PWA_LOG_LEVEL', 'INFO'),
            log_file=env.get('PWA_LOG_FILE'),
            environment=env.get('PWA_ENV', 'development'),
            gemini_api_key=env.get('GEMINI_API_KEY'),
            chat_model=env.get('PWA_CHAT_MODEL', 'gemini-2.5-flash'),
        )

    @property
    def cache_names(self) -> CacheNames:
        return CacheNames.for_version(self.cache_version)

    @property
    def development(self) -> bool:
        return self.environment == 'development'

    def require_origin(self) -> str:
        if not self.origin:
            raise ConfigurationError("PWA_ORIGIN environment variable is required")
        return self.origin


def _parse_number(env: Dict[str, str], name: str, default, cast):
    raw: Optional[str] = env.get(name)
    if raw is None or raw == '':
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
