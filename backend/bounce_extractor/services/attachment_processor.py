"""
Attachment processor for bounce notifications.

Bounce notifications often carry the interesting part as an attachment:
the original DSN as a message/rfc822 part, a forwarded .eml file, or a
plain-text report. This module decodes such attachments and re-applies the
recipient scanners and diagnostics parser to their content.

Handled attachment kinds:
  - .eml / message/rfc822 / text/rfc822  -> split into headers + body, then
    header scan, DSN fields, bounce patterns, diagnostics, failure reason
  - text/plain / .txt                    -> DSN fields and bounce patterns only
  - anything else                        -> ignored

Content may arrive raw or base64-encoded regardless of what the declared
content type says, so the encoding is sniffed (see decode_attachment_content).
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from bounce_extractor.models.bounce import Attachment
from bounce_extractor.services.diagnostics import extract_diagnostics, extract_failure_reason
from bounce_extractor.services.recipient_scanners import (
    AddressHit,
    dedupe_hits,
    extract_from_bounce_patterns,
    extract_from_dsn,
    extract_from_header,
)

logger = logging.getLogger(__name__)

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]+$")
_WHITESPACE_RE = re.compile(r"\s+")
_HEADER_BODY_SPLIT_RE = re.compile(r"\r?\n\r?\n")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HEADER_LINE_RE = re.compile(r"^([^:\s][^:]*):\s*(.*)$")

_EML_CONTENT_TYPES = ("message/rfc822", "text/rfc822")


@dataclass
class ParsedEml:
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def decode_attachment_content(attachment: Attachment) -> str:
    """
    Return the attachment content as text, decoding base64 when it looks encoded.

    Base64 is attempted when the content type mentions base64, or when the
    content (ignoring whitespace) uses only the base64 alphabet. Content that
    is not valid base64 (stray characters, bad padding) is returned unchanged.
    Decoded bytes that are not valid UTF-8 are replaced with U+FFFD so that
    the addresses around them are still found.
    """
    content = attachment.content or ""
    content_type = (attachment.content_type or "").lower()
    compact = _WHITESPACE_RE.sub("", content)

    if "base64" not in content_type and not _BASE64_RE.match(compact):
        return content

    try:
        decoded = base64.b64decode(compact, validate=True)
    except binascii.Error as exc:
        logger.debug(
            "decode_attachment_content: %r is not base64 (%s); using raw content",
            attachment.name,
            exc,
        )
        return content

    return decoded.decode("utf-8", errors="replace")


def parse_eml_content(content: str) -> ParsedEml:
    """
    Split an RFC-822 message into a header mapping and a body.

    The header block ends at the first blank line (LF or CRLF). Folded header
    lines (starting with whitespace) are joined onto the previous value with a
    single space. Header names are lowercased; repeated headers are joined
    with ", ". Lines that are neither a header nor a continuation are skipped
    and end the current header, so indented lines after them are dropped too.

    Without a blank line the whole content is treated as the header block.
    """
    if not content:
        return ParsedEml()

    parts = _HEADER_BODY_SPLIT_RE.split(content, maxsplit=1)
    header_section = parts[0]
    body = parts[1] if len(parts) > 1 else ""

    headers: dict[str, str] = {}
    current_name: Optional[str] = None

    for line in _LINE_SPLIT_RE.split(header_section):
        if not line.strip():
            continue

        if line[0] in " \t":
            if current_name is not None:
                headers[current_name] = f"{headers[current_name]} {line.strip()}"
            continue

        match = _HEADER_LINE_RE.match(line)
        if not match:
            current_name = None
            continue

        name = match.group(1).strip().lower()
        value = match.group(2).strip()
        if name in headers:
            headers[name] = f"{headers[name]}, {value}"
        else:
            headers[name] = value
        current_name = name

    return ParsedEml(headers=headers, body=body)


def _is_eml(name: str, content_type: str) -> bool:
    return name.endswith(".eml") or any(t in content_type for t in _EML_CONTENT_TYPES)


def _is_plain_text(name: str, content_type: str) -> bool:
    return "text/plain" in content_type or name.endswith(".txt")


def _tag(hits: list[AddressHit], attachment_name: str) -> list[AddressHit]:
    for hit in hits:
        hit.source = hit.source.as_attachment()
        hit.attachment_name = attachment_name
    return hits


def _extract_from_eml(text: str, attachment_name: str) -> list[AddressHit]:
    parsed = parse_eml_content(text)

    hits = extract_from_header(parsed.headers)
    hits += extract_from_dsn(parsed.body)
    hits += extract_from_bounce_patterns(parsed.body)
    _tag(hits, attachment_name)

    diagnostics = extract_diagnostics(parsed.body)
    failure_reason = extract_failure_reason(parsed.body)

    for hit in hits:
        if not hit.diagnostic_code:
            hit.diagnostic_code = diagnostics.diagnostic_code
            hit.status_code = diagnostics.status_code
            hit.failure_reason = hit.failure_reason or failure_reason

    return hits


def _extract_from_plain_text(text: str, attachment_name: str) -> list[AddressHit]:
    hits = extract_from_dsn(text)
    hits += extract_from_bounce_patterns(text)
    return _tag(hits, attachment_name)


def extract_from_attachments(attachments: Optional[Iterable[Attachment]]) -> list[AddressHit]:
    """
    Extract failed recipients from every supported attachment.

    Attachments are processed in input order and the combined hits are
    deduplicated by address, first occurrence winning.
    """
    hits: list[AddressHit] = []

    for attachment in attachments or []:
        if attachment is None or not attachment.content:
            continue

        name = (attachment.name or "").lower()
        content_type = (attachment.content_type or "").lower()

        if _is_eml(name, content_type):
            text = decode_attachment_content(attachment)
            hits += _extract_from_eml(text, attachment.name)
        elif _is_plain_text(name, content_type):
            text = decode_attachment_content(attachment)
            hits += _extract_from_plain_text(text, attachment.name)
        else:
            logger.debug(
                "extract_from_attachments: skipping %r (%s)",
                attachment.name,
                attachment.content_type or "no content type",
            )

    return dedupe_hits(hits)
