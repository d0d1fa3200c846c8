"""
Logging helpers shared by routers and services.
"""

import logging
from typing import Any, Dict, Optional

SENSITIVE_FIELDS = {
    'password', 'senha', 'token', 'secret', 'api_key', 'authorization', 'cookie'
}

REDACTED = "***REDACTED***"


def get_logger(name: str) -> logging.Logger:
    """
    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove secrets from a dict before it is attached to a log record.

    Keys are matched case-insensitively by substring, so ``senha``,
    ``refreshToken`` and ``access_token`` are all caught. Sensitive values are
    fully redacted, tokens included. Nested dicts are sanitized recursively.
    """
    sanitized = data.copy()

    for key, value in sanitized.items():
        lowered = key.lower()
        if any(sensitive in lowered for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = REDACTED

        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

    return sanitized


def log_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: str,
    extra: Optional[Dict[str, Any]] = None
):
    """
    Log one HTTP request; the level follows the status code
    (5xx ERROR, 4xx WARNING, otherwise INFO).
    """
    log_data = {
        "http_method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "client_ip": client_ip,
    }

    if extra:
        log_data.update(sanitize_log_data(extra))

    message = f'{client_ip} - "{method} {path}" {status_code}'
    if status_code >= 500:
        logger.error(message, extra=log_data)
    elif status_code >= 400:
        logger.warning(message, extra=log_data)
    else:
        logger.info(message, extra=log_data)
