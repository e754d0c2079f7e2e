"""Process entry point for the create-workspace function.

Appwrite hands the invocation to the process as a JSON document on stdin:

    {"headers": {...}, "body": "<json string>", "env": {...}}

and reads the result from stdout:

    {"statusCode": 200, "body": "<json string>"}

Logs are written to stderr so they never mix with the response.
"""

import json
import logging
import sys
from typing import Any, Mapping, Optional, TextIO

import structlog
from pydantic import ValidationError

from src.provisioning.config import load_settings
from src.provisioning.errors import ErrorCode
from src.provisioning.handler import handle_request, respond_error

logger = structlog.get_logger()


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Configure structlog to emit JSON lines through stdlib logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=stream or sys.stderr,
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _log_level_from(payload: Any) -> str:
    """Resolve LOG_LEVEL from the payload ``env`` over the process environment.

    Falls back to INFO when the settings cannot be built; the handler
    reports the configuration error itself.
    """
    env = payload.get("env") if isinstance(payload, dict) else None
    try:
        return load_settings(env if isinstance(env, Mapping) else None).log_level
    except ValidationError:
        return "INFO"


def run(stdin: TextIO, stdout: TextIO) -> int:
    """Read one invocation from ``stdin`` and write its response to ``stdout``.

    Returns:
        Process exit code; 0 whenever a response was written.
    """
    try:
        payload = json.load(stdin)
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError from a non-UTF-8 stream
        configure_logging()
        logger.error("Failed to parse invocation payload")
        response = respond_error(
            500, ErrorCode.INVALID_REQUEST.value, "Failed to parse request"
        )
    else:
        configure_logging(_log_level_from(payload))
        response = handle_request(payload)

    stdout.write(json.dumps(response.to_wire()))
    stdout.flush()
    return 0


def main() -> None:
    sys.exit(run(sys.stdin, sys.stdout))


if __name__ == "__main__":
    main()
