"""
Diagnostics parsing and failure-reason classification for bounce bodies.
"""

import logging
import re

from bounce_extractor.models.bounce import Diagnostics, FailureReason

logger = logging.getLogger(__name__)

_STATUS_RE = re.compile(r"Status:\s*(\d+\.\d+\.\d+)", re.IGNORECASE)
_DIAGNOSTIC_CODE_RE = re.compile(
    r"Diagnostic-Code:[ \t]*(?:[\w-]+;)?[ \t]*([^\r\n]+)", re.IGNORECASE
)
_ACTION_RE = re.compile(r"Action:\s*(\w+)", re.IGNORECASE)

# Priority order: a body matching several groups resolves to the first one.
_REASON_PATTERNS: list[tuple[re.Pattern, FailureReason]] = [
    (
        re.compile(
            r"user unknown|user not found|mailbox not found|no such user"
            r"|does not exist|RecipientNotFound",
            re.IGNORECASE,
        ),
        FailureReason.USER_NOT_FOUND,
    ),
    (re.compile(r"mailbox full|over quota|quota exceeded", re.IGNORECASE), FailureReason.MAILBOX_FULL),
    (
        re.compile(r"domain not found|no mx record|dns error|domain.*does not exist", re.IGNORECASE),
        FailureReason.DOMAIN_NOT_FOUND,
    ),
    (re.compile(r"connection refused|connection timed out", re.IGNORECASE), FailureReason.CONNECTION_FAILED),
    (re.compile(r"blocked|blacklisted|spam", re.IGNORECASE), FailureReason.BLOCKED),
    (re.compile(r"invalid address|bad address", re.IGNORECASE), FailureReason.INVALID_ADDRESS),
    (re.compile(r"relay denied|relaying not permitted", re.IGNORECASE), FailureReason.RELAY_DENIED),
    (re.compile(r"message too large|size limit exceeded", re.IGNORECASE), FailureReason.MESSAGE_TOO_LARGE),
]


def extract_diagnostics(body: str) -> Diagnostics:
    """
    Parse the Status, Diagnostic-Code and Action fields of a DSN body.

    Only the first occurrence of each field is used, so a multi-recipient
    report is summarised by its first recipient block.

    Examples:
        "Status: 5.1.1"                            -> status_code "5.1.1"
        "Diagnostic-Code: smtp; 550 User unknown"  -> diagnostic_code "550 User unknown"
        "Action: FAILED"                           -> action "failed"
    """
    if not body:
        return Diagnostics()

    status = _STATUS_RE.search(body)
    diagnostic = _DIAGNOSTIC_CODE_RE.search(body)
    action = _ACTION_RE.search(body)

    return Diagnostics(
        status_code=status.group(1) if status else None,
        diagnostic_code=(diagnostic.group(1).strip() or None) if diagnostic else None,
        action=action.group(1).lower() if action else None,
    )


def extract_failure_reason(body: str) -> FailureReason:
    """Classify a bounce body into a coarse failure category."""
    if body:
        for pattern, reason in _REASON_PATTERNS:
            match = pattern.search(body)
            if match:
                logger.debug("extract_failure_reason: %r -> %s", match.group(0), reason.value)
                return reason
    return FailureReason.DELIVERY_FAILED
