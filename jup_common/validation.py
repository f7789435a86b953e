"""Readable diagnostics for pydantic validation failures."""

from __future__ import annotations

from typing import Any, Dict, List

from loguru import logger
from pydantic import ValidationError


def format_validation_error(error: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "path": ".".join(str(p) for p in err.get("loc", ())) or "root",
            "message": err.get("msg", ""),
        }
        for err in error.errors()
    ]


def log_validation_errors(error: ValidationError, original_data: Any = None) -> None:
    issues = format_validation_error(error)
    logger.error(f"❌ Jupiter: response failed validation ({len(issues)} issue(s))")
    for issue in issues:
        logger.error(f"  🔸 Path: {issue['path']} | Message: {issue['message']}")
    if original_data is not None:
        logger.debug(f"📂 Original data: {original_data!r}")


def log_undecodable_body(error: ValueError, body: str) -> None:
    logger.error(f"❌ Jupiter: response body is not valid JSON ({error})")
    logger.debug(f"📂 Original body: {body[:500]!r}")
