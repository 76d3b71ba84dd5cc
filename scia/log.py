"""
Logging helpers shared by the engine components.
"""

import logging
import re


def null_logger(name: str = "scia.null") -> logging.Logger:
    """Logger that swallows every record; handy for tests."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def redact_sensitive_info(text: str) -> str:
    """Redact sensitive information from text before logging."""
    patterns = [
        (r'[A-Za-z0-9+/]{40,}={0,2}', '[REDACTED_TOKEN]'),
        (r'password\s*[:=]\s*\S+', 'password=[REDACTED]'),
        (r'api[_-]?key\s*[:=]\s*\S+', 'api_key=[REDACTED]'),
        (r'token\s*[:=]\s*\S+', 'token=[REDACTED]'),
    ]

    redacted = text
    for pattern, replacement in patterns:
        redacted = re.sub(pattern, replacement, redacted, flags=re.IGNORECASE)

    return redacted
