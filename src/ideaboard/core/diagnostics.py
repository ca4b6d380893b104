"""Error Classifier.

Maps a failure from the Persistence Gateway to a diagnostic report with a
title, the raw technical message and an ordered remediation checklist.

Typed errors and backend error codes are trusted first. Free-text matching
on the message is only a fallback for older backends that send neither.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from ideaboard.errors import GatewayError, ProtocolError, TransportError

logger = logging.getLogger(__name__)


class ErrorCategory(StrEnum):
    CONNECTIVITY = "connectivity"
    PROTOCOL = "protocol"
    GENERIC = "generic"


@dataclass(frozen=True)
class DiagnosticReport:
    category: ErrorCategory
    title: str
    detail: str
    remediation: tuple[str, ...]
    raw_message: str


# Backend error codes -> category
ERROR_CODES: dict[str, ErrorCategory] = {
    "network": ErrorCategory.CONNECTIVITY,
    "unreachable": ErrorCategory.CONNECTIVITY,
    "permission_denied": ErrorCategory.CONNECTIVITY,
    "bad_request": ErrorCategory.PROTOCOL,
    "unknown_action": ErrorCategory.PROTOCOL,
    "version_mismatch": ErrorCategory.PROTOCOL,
}

_CONNECTIVITY_PATTERNS = re.compile(
    r"failed to fetch|networkerror|network error|connecterror|connection (refused|reset|error)"
    r"|name or service not known|nodename nor servname|temporary failure in name resolution"
    r"|no route to host|network is unreachable|timed out",
    re.IGNORECASE,
)
_PROTOCOL_PATTERNS = re.compile(
    r"unexpected token|json|expecting value|unknown action|ação desconhecida",
    re.IGNORECASE,
)

_TITLES = {
    ErrorCategory.CONNECTIVITY: "Could not connect to the backend",
    ErrorCategory.PROTOCOL: "Unexpected response from the backend",
    ErrorCategory.GENERIC: "Unexpected backend error",
}

_EXPLANATIONS = {
    ErrorCategory.CONNECTIVITY: (
        "The application could not reach the configured backend endpoint."
    ),
    ErrorCategory.PROTOCOL: (
        "The backend answered, but the response did not match the expected contract. "
        "This usually means the deployed backend script is older than the application."
    ),
    ErrorCategory.GENERIC: "An error occurred while talking to the backend.",
}

_REMEDIATION: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.CONNECTIVITY: (
        "Check that backend_url is the exact deployment URL and that it opens in a browser.",
        "Check the deployment's access permissions: it must be reachable by anyone "
        "who uses the application.",
        "Check your local network connection.",
    ),
    ErrorCategory.PROTOCOL: (
        "Copy the current backend script over the deployed one, replacing all of its code.",
        "Create a new deployment version so the updated script is served.",
        "Reload the data.",
    ),
    ErrorCategory.GENERIC: (
        "Check that the deployed backend script matches the current contract version.",
        "Run through the connectivity and protocol checks.",
    ),
}


def categorize(error: BaseException | str) -> ErrorCategory:
    if isinstance(error, TransportError):
        return ErrorCategory.CONNECTIVITY
    if isinstance(error, ProtocolError):
        return ErrorCategory.PROTOCOL
    if isinstance(error, GatewayError) and error.code in ERROR_CODES:
        return ERROR_CODES[error.code]

    message = str(error)
    if _CONNECTIVITY_PATTERNS.search(message):
        return ErrorCategory.CONNECTIVITY
    if _PROTOCOL_PATTERNS.search(message):
        return ErrorCategory.PROTOCOL
    return ErrorCategory.GENERIC


def classify_error(error: BaseException | str) -> DiagnosticReport:
    """Build the diagnostic report for a gateway failure."""
    category = categorize(error)
    message = str(error)
    logger.debug("Classified error as %s: %s", category, message)
    return DiagnosticReport(
        category=category,
        title=_TITLES[category],
        detail=f"{_EXPLANATIONS[category]} Technical detail: {message}",
        remediation=_REMEDIATION[category],
        raw_message=message,
    )
