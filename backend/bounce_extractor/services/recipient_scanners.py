"""
Recipient scanners for bounce notifications.

Each scanner looks at one kind of evidence and returns AddressHit records:

  extract_from_header           — X-Failed-Recipients header
  extract_from_dsn              — RFC 3464 Final-Recipient / Original-Recipient lines
  extract_from_bounce_patterns  — free-text phrasing used by non-DSN bounces

Scanners never raise on malformed input; they just find nothing. Addresses
are lowercased on the way out. Deduplication is left to the caller so that
the scan order decides which source wins.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from bounce_extractor.models.bounce import AddressSource, FailureReason

logger = logging.getLogger(__name__)

FAILED_RECIPIENTS_HEADER = "X-Failed-Recipients"

_ADDRESS = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
EMAIL_RE = re.compile(_ADDRESS)

_FINAL_RECIPIENT_RE = re.compile(
    r"Final-Recipient:[ \t]*(?:[\w-]+;)?[ \t]*([^\r\n]+)", re.IGNORECASE
)
_ORIGINAL_RECIPIENT_RE = re.compile(
    r"Original-Recipient:[ \t]*(?:[\w-]+;)?[ \t]*([^\r\n]+)", re.IGNORECASE
)

# Evaluated in order; every match of every pattern yields a hit.
_BOUNCE_PATTERNS = [
    re.compile(
        r"(?:could not be delivered to|failed to deliver to|undeliverable to"
        r"|rejected by|bounced from|Delivery has failed to)[:\s]*(" + _ADDRESS + r")",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:The following recipient|Recipient address|these recipients or groups)"
        r"[:\s]*(" + _ADDRESS + r")",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:User unknown|Mailbox not found|Invalid recipient)\s*(?:[:<]\s*)?(" + _ADDRESS + r")",
        re.IGNORECASE,
    ),
    re.compile(
        r"<(" + _ADDRESS + r")>.*(?:failed|rejected|bounced|undeliverable)",
        re.IGNORECASE,
    ),
    # A line holding nothing but an address
    re.compile(r"^(" + _ADDRESS + r")$", re.IGNORECASE | re.MULTILINE),
]


@dataclass
class AddressHit:
    """An address found by one scanner, before message-level attribution."""

    address: str
    source: AddressSource
    attachment_name: Optional[str] = None
    diagnostic_code: Optional[str] = None
    status_code: Optional[str] = None
    failure_reason: Optional[FailureReason] = None


def find_addresses(text: str) -> list[str]:
    """Return every email-syntax substring of text, lowercased, in order."""
    if not text:
        return []
    return [match.lower() for match in EMAIL_RE.findall(text)]


def get_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """
    Case-insensitive header lookup.

    Returns None when headers is empty/None or the header is absent.
    """
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


def extract_from_header(headers: Optional[Mapping[str, str]]) -> list[AddressHit]:
    """Pull addresses out of the X-Failed-Recipients header."""
    value = get_header(headers, FAILED_RECIPIENTS_HEADER)
    if not value:
        return []
    return [
        AddressHit(address=address, source=AddressSource.HEADER)
        for address in find_addresses(value)
    ]


def _scan_field(body: str, pattern: re.Pattern, source: AddressSource) -> list[AddressHit]:
    hits: list[AddressHit] = []
    for match in pattern.finditer(body):
        for address in find_addresses(match.group(0)):
            hits.append(AddressHit(address=address, source=source))
    return hits


def extract_from_dsn(body: str) -> list[AddressHit]:
    """
    Extract recipients from DSN per-recipient fields.

    Every Final-Recipient line is reported, then every Original-Recipient
    line, so multi-recipient reports yield one hit per listed address.
    """
    if not body:
        return []

    hits = _scan_field(body, _FINAL_RECIPIENT_RE, AddressSource.DSN_FINAL_RECIPIENT)
    hits += _scan_field(body, _ORIGINAL_RECIPIENT_RE, AddressSource.DSN_ORIGINAL_RECIPIENT)
    return hits


def extract_from_bounce_patterns(body: str) -> list[AddressHit]:
    """
    Match vendor bounce phrasing that does not follow the DSN structure.

    The patterns over-trigger on purpose (a bare address line counts);
    duplicates are absorbed by dedupe_hits.
    """
    if not body:
        return []

    hits: list[AddressHit] = []
    for pattern in _BOUNCE_PATTERNS:
        for match in pattern.finditer(body):
            hits.append(
                AddressHit(address=match.group(1).lower(), source=AddressSource.BOUNCE_PATTERN)
            )

    logger.debug("extract_from_bounce_patterns: %d match(es)", len(hits))
    return hits


def dedupe_hits(hits: Iterable[AddressHit]) -> list[AddressHit]:
    """Keep the first hit per address, preserving order."""
    seen: set = set()
    unique: list[AddressHit] = []
    for hit in hits:
        if hit.address not in seen:
            seen.add(hit.address)
            unique.append(hit)
    return unique
