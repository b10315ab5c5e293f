"""
Failed-address extraction for bounce notifications.

extract_failed_addresses() is the main entry point. It combines every
recipient scanner over the message and its attachments, keeps the first hit
per address, and attributes diagnostics to each surviving address.

Scan order (first source wins on duplicates):
  1. X-Failed-Recipients header
  2. DSN Final-Recipient / Original-Recipient fields
  3. Free-text bounce patterns
  4. Attachments, in input order (header -> DSN -> bounce patterns each)

Diagnostics and the failure reason are computed once from the top-level
body. Attachment-sourced addresses keep the values parsed from their own
attachment where those are populated and fall back to the message-level ones
field by field.
"""

import logging

from bounce_extractor.models.bounce import ExtractedAddress, Message
from bounce_extractor.services.attachment_processor import extract_from_attachments
from bounce_extractor.services.diagnostics import extract_diagnostics, extract_failure_reason
from bounce_extractor.services.recipient_scanners import (
    AddressHit,
    dedupe_hits,
    extract_from_bounce_patterns,
    extract_from_dsn,
    extract_from_header,
)

logger = logging.getLogger(__name__)


def collect_address_hits(message: Message) -> list[AddressHit]:
    """Run every scanner over the message in scan order and deduplicate."""
    body = message.body or ""

    hits = extract_from_header(message.headers)
    hits += extract_from_dsn(body)
    hits += extract_from_bounce_patterns(body)
    hits += extract_from_attachments(message.attachments)

    return dedupe_hits(hits)


def extract_failed_addresses(message: Message) -> list[ExtractedAddress]:
    """
    Extract the failed recipient addresses of a bounce notification.

    Args:
        message: The bounce message (body, headers, attachments). Empty or
                 missing parts are treated as empty.

    Returns:
        One ExtractedAddress per distinct address, in scan order. An empty
        list means no failed recipient could be identified.
    """
    hits = collect_address_hits(message)
    if not hits:
        return []

    diagnostics = extract_diagnostics(message.body or "")
    failure_reason = extract_failure_reason(message.body or "")

    results = [
        ExtractedAddress(
            address=hit.address,
            failure_reason=hit.failure_reason or failure_reason,
            diagnostic_code=hit.diagnostic_code or diagnostics.diagnostic_code,
            status_code=hit.status_code or diagnostics.status_code,
            source=hit.source,
            attachment_name=hit.attachment_name,
        )
        for hit in hits
    ]

    logger.debug(
        "extract_failed_addresses: %d address(es), reason=%s, status=%s",
        len(results),
        failure_reason.value,
        diagnostics.status_code,
    )
    return results
