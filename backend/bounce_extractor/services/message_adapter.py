"""
Message adapter service.

Normalizes provider-specific message payloads into a single
provider-agnostic InboundMessage model, so the extraction core never sees
connector-specific field names.

Supported providers:
  - direct  (default) camelCase payload forwarded by a mail connector
  - graph   Microsoft Graph / Outlook message resource

Adding a new provider:
  1. Write a normalize_<provider>(payload: dict) -> InboundMessage function.
  2. Register it in _NORMALIZERS.
  3. Set MESSAGE_PROVIDER=<provider> in the environment.

Graph message field assumptions
-------------------------------
  id                       str   — Graph message id, used as messageId
  subject                  str
  from.emailAddress.address str
  body.content             str   — text body (HTML bodies are not parsed)
  receivedDateTime         str
  internetMessageHeaders   list  — each item {name, value}
  attachments              list  — each item {name, contentType, contentBytes}
                                   (contentBytes is base64)

A change notification wrapper ({"value": [message, ...]}) is unwrapped to its
first message.
"""

import os
from typing import Any, Callable, Optional

from bounce_extractor.models.bounce import Attachment, InboundMessage


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return _as_text(value)


# ---------------------------------------------------------------------------
# Direct normalizer
# ---------------------------------------------------------------------------

def normalize_direct(payload: dict) -> InboundMessage:
    """
    Convert a direct camelCase payload to InboundMessage.

    Keys: messageId, subject, from, body, headers{}, receivedDateTime,
    attachments[].{name, contentType, content}

    Header values that are not strings are stringified; null collections are
    treated as empty.
    """
    headers = {
        _as_text(name): _as_text(value)
        for name, value in (payload.get("headers") or {}).items()
    }

    attachments: list[Attachment] = []
    for att in payload.get("attachments") or []:
        if not isinstance(att, dict):
            continue
        attachments.append(
            Attachment(
                name=_as_text(att.get("name")),
                content_type=_as_text(att.get("contentType")),
                content=_as_text(att.get("content")),
            )
        )

    return InboundMessage(
        message_id=_optional_text(payload.get("messageId")),
        subject=_optional_text(payload.get("subject")),
        sender=_optional_text(payload.get("from")),
        received_date_time=_optional_text(payload.get("receivedDateTime")),
        body=_as_text(payload.get("body")),
        headers=headers,
        attachments=attachments,
    )


# ---------------------------------------------------------------------------
# Microsoft Graph normalizer
# ---------------------------------------------------------------------------

def _graph_body(body: Any) -> str:
    if isinstance(body, dict):
        return _as_text(body.get("content"))
    return _as_text(body)


def _graph_sender(sender: Any) -> Optional[str]:
    if isinstance(sender, dict):
        return _optional_text((sender.get("emailAddress") or {}).get("address"))
    return _optional_text(sender)


def normalize_graph(payload: dict) -> InboundMessage:
    """
    Convert a Microsoft Graph message resource to InboundMessage.

    Repeated internet message headers are joined with ", ". Attachment bytes
    are base64 in Graph, so "; base64" is appended to the content type when
    it does not already say so.
    """
    if isinstance(payload.get("value"), list) and payload["value"]:
        payload = payload["value"][0]

    headers: dict[str, str] = {}
    for header in payload.get("internetMessageHeaders") or []:
        if not isinstance(header, dict):
            continue
        name = _as_text(header.get("name"))
        if not name:
            continue
        value = _as_text(header.get("value"))
        headers[name] = f"{headers[name]}, {value}" if name in headers else value

    attachments: list[Attachment] = []
    for att in payload.get("attachments") or []:
        if not isinstance(att, dict):
            continue
        content_type = _as_text(att.get("contentType"))
        if "base64" not in content_type.lower():
            content_type = f"{content_type}; base64" if content_type else "base64"
        attachments.append(
            Attachment(
                name=_as_text(att.get("name")),
                content_type=content_type,
                content=_as_text(att.get("contentBytes")),
            )
        )

    return InboundMessage(
        message_id=_optional_text(payload.get("id")),
        subject=_optional_text(payload.get("subject")),
        sender=_graph_sender(payload.get("from")),
        received_date_time=_optional_text(payload.get("receivedDateTime")),
        body=_graph_body(payload.get("body")),
        headers=headers,
        attachments=attachments,
    )


# ---------------------------------------------------------------------------
# Registry and dispatcher
# ---------------------------------------------------------------------------

_NORMALIZERS: dict[str, Callable[[dict], InboundMessage]] = {
    "direct": normalize_direct,
    "graph": normalize_graph,
}


def normalize_payload(payload: dict, provider: str | None = None) -> InboundMessage:
    """
    Route to the correct normalizer based on the provider argument or the
    MESSAGE_PROVIDER environment variable.

    Priority:
      1. provider argument (explicit, used in tests and the query string)
      2. MESSAGE_PROVIDER env var
      3. Default: "direct"

    Raises ValueError for unknown provider names or a non-object payload.
    """
    resolved = provider or os.getenv("MESSAGE_PROVIDER", "direct")
    resolved = resolved.lower().strip()

    normalizer = _NORMALIZERS.get(resolved)
    if normalizer is None:
        raise ValueError(
            f"Unknown message provider {resolved!r}. "
            f"Supported providers: {sorted(_NORMALIZERS)}"
        )

    if not isinstance(payload, dict):
        raise ValueError("Message payload must be a JSON object")

    return normalizer(payload)
