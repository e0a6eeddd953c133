"""
Logging configuration for portfolio_pwa
"""

import logging
import logging.handlers
import os
import sys
from .validation import SecurityValidator


class SecureLogFormatter(logging.Formatter):
    """Custom formatter that masks API keys in log records"""

    def __init__(self, fmt: str = None, datefmt: str = None):
        super().__init__(fmt, datefmt)
        self.secret = os.getenv('GEMINI_API_KEY')

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, str):
            record.msg = SecurityValidator.sanitize_log_message(record.msg, self.secret)

        if record.args:
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized_args.append(SecurityValidator.sanitize_log_message(arg, self.secret))
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)

        return super().format(record)


def setup_logging(
    log_level: str = None,
    log_file: str = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Setup logging for portfolio_pwa

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured root logger
    """
    level_str = log_level or os.getenv('PWA_LOG_LEVEL', 'INFO')
    level = getattr(logging, level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = SecureLogFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        except OSError as e:
            root_logger.warning(f"Failed to setup file logging: {e}")

    # Reduce noise from external libraries
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('portfolio_pwa').setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Level: {level_str}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_fetch(logger: logging.Logger, method: str, url: str, status: int = None, duration: float = None):
    """Log an outbound fetch with the URL sanitized"""
    clean_url = SecurityValidator.sanitize_api_key_in_text(url)

    message = f"Fetch {method} {clean_url}"
    if status is not None:
        message += f" - Status: {status}"
    if duration is not None:
        message += f" - Duration: {duration:.2f}s"
    logger.debug(message)


def log_strategy(logger: logging.Logger, strategy: str, url: str, outcome: str):
    """Log which strategy served a request and how"""
    clean_url = SecurityValidator.sanitize_api_key_in_text(url)
    logger.debug(f"Strategy {strategy} - {clean_url} - {outcome}")


def log_cache_operation(logger: logging.Logger, operation: str, store: str, key: str, hit: bool = None):
    """Log cache operations with sanitized keys"""
    clean_key = SecurityValidator.sanitize_api_key_in_text(key)

    if hit is not None:
        status = "HIT" if hit else "MISS"
        logger.debug(f"Cache {operation} [{store}] - {clean_key} - {status}")
    else:
        logger.debug(f"Cache {operation} [{store}] - {clean_key}")
