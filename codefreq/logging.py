"""
codefreq logging utilities.

Provides configurable logging for the report pipeline and its HTTP traffic.
Ensures no credentials (tokens, app JWTs, private keys) are logged.
"""

import logging
import re
from typing import Any

# Create package loggers
_pkg_logger = logging.getLogger("codefreq")
_http_logger = logging.getLogger("codefreq.http")
_auth_logger = logging.getLogger("codefreq.auth")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Private key patterns (PEM format)
    (re.compile(r"-----BEGIN[^-]*PRIVATE KEY-----.*?-----END[^-]*PRIVATE KEY-----", re.DOTALL), "[PRIVATE_KEY_REDACTED]"),
    # Authorization header values
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-\.=]{20,}", re.IGNORECASE), r"\1 [REDACTED]"),
    # GitHub token formats (classic, fine-grained, installation, oauth)
    (re.compile(r"\b(gh[pousr]_[A-Za-z0-9]{20,}|github_pat_[A-Za-z0-9_]{20,})\b"), "[TOKEN_REDACTED]"),
    # JSON Web Tokens
    (re.compile(r"\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"), "[JWT_REDACTED]"),
    # Secret/token key-value patterns
    (re.compile(r"(secret|token|password|private_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "private_key", "privatekey", "secret", "password", "jwt"}
)

_installed_handler: logging.Handler | None = None


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    auth_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure codefreq logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        auth_level: Log level for authentication logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from codefreq.logging import configure_logging

        # Trace every GitHub API call
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    # Reconfiguring replaces the handler installed by a previous call
    global _installed_handler
    if _installed_handler is not None:
        _pkg_logger.removeHandler(_installed_handler)
    _installed_handler = handler

    _pkg_logger.setLevel(level)
    _pkg_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _auth_logger.setLevel(auth_level if auth_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a codefreq logger.

    Args:
        name: Logger name suffix (e.g., "http", "aggregate"). If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _pkg_logger
    return logging.getLogger(f"codefreq.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Replaces private keys, bearer tokens, GitHub tokens and JWTs with
    redacted placeholders.

    Args:
        text: Text that may contain sensitive data

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of lowercase keys to mask (default: authorization, token, private_key, ...)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    keys = _DEFAULT_SENSITIVE_KEYS if sensitive_keys is None else frozenset(sensitive_keys)

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in keys or any(sk in key_lower for sk in keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """
    Log an HTTP request at DEBUG level with sensitive data masked.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        headers: Request headers (optional)
        body: Request body (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if body:
        log_parts.append(mask_sensitive_data(f"body={safe_log_dict(body)}"))

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
    request_id: str | None = None,
) -> None:
    """
    Log an HTTP response at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request URL
        elapsed_ms: Request duration in milliseconds (optional)
        request_id: GitHub request id (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if request_id:
        log_parts.append(f"request_id={request_id}")

    _http_logger.debug(" | ".join(log_parts))


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
]
