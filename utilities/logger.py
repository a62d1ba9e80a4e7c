"""
Structured logging for the book tracker using structlog.
Provides the process-wide setup plus a context-bound logger for auth events.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Add call-site information to every event
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def redact_secret(value: Optional[str], keep: int = 6) -> Optional[str]:
    """Shorten a token or session id to a prefix that is safe to log."""
    if not value:
        return None
    return value[:keep] + "..."


class AuthEventLogger:
    """
    Specialized logger for authentication events with context management.

    Events carry user ids and normalized emails only. Passwords are never
    passed in, and credentials are truncated with redact_secret().
    """

    def __init__(self, name: str = "accounts"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'AuthEventLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def log_registered(self, user_id: str, email: str) -> None:
        self.logger.info("User registered", user_id=user_id, email=email, **self.context)

    def log_duplicate_registration(self, email: str) -> None:
        self.logger.warning("Registration rejected, email in use", email=email, **self.context)

    def log_login(self, user_id: str, strategy: str) -> None:
        self.logger.info("Login succeeded", user_id=user_id, strategy=strategy, **self.context)

    def log_login_failure(self, email: str) -> None:
        """Log a failed login without saying which check failed."""
        self.logger.warning("Login failed", email=email, **self.context)

    def log_logout(self, credential: Optional[str], strategy: str) -> None:
        self.logger.info(
            "Logout",
            credential=redact_secret(credential),
            strategy=strategy,
            **self.context
        )

    def log_rejected(self, reason: str, credential: Optional[str] = None) -> None:
        """Log a credential that failed verification."""
        self.logger.info(
            "Credential rejected",
            reason=reason,
            credential=redact_secret(credential),
            **self.context
        )
