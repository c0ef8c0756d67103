"""JSONL login-attempt ingestion.

Parses JSONL files of login attempts (one JSON object per line) into
LoginAttempt objects, for replaying recorded traffic through the engine.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from login_watch.schema import LoginAttempt

logger = logging.getLogger(__name__)


def parse_jsonl(path: Path | str) -> list[LoginAttempt]:
    """Parse a JSONL file into LoginAttempt objects.

    Args:
        path: Path to the JSONL file.

    Returns:
        List of LoginAttempt objects in file order.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Log file not found: {path}")

    attempts = _parse_lines(path.read_text(encoding="utf-8"))
    logger.info(f"Parsed {len(attempts)} attempts from {path}")
    return attempts


def parse_jsonl_from_string(content: str) -> list[LoginAttempt]:
    """Parse JSONL content from a string.

    Args:
        content: JSONL content as a string.

    Returns:
        List of LoginAttempt objects.
    """
    attempts = _parse_lines(content)
    logger.info(f"Parsed {len(attempts)} attempts from string content")
    return attempts


def _parse_lines(content: str) -> list[LoginAttempt]:
    attempts: list[LoginAttempt] = []

    for line_num, line in enumerate(content.strip().split("\n"), start=1):
        line = line.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping malformed JSON on line {line_num}: {e}")
            continue

        if not isinstance(data, dict):
            logger.warning(f"Skipping non-object JSON on line {line_num}")
            continue

        # Derive a minimal fingerprint if the probe is missing
        if not data.get("fingerprint"):
            data["fingerprint"] = {"user_agent": data.get("user_agent", "")}

        try:
            attempt = LoginAttempt.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Skipping invalid attempt on line {line_num}: {e.error_count()} errors")
            continue

        attempts.append(attempt)
        logger.debug(f"Parsed attempt for user {attempt.user_id}")

    return attempts
