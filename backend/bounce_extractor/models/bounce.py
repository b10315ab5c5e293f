"""
Pydantic models for bounce processing.

Models:
  Attachment          — one attachment of an inbound message (raw or base64 text)
  Message             — the core input: body, headers, attachments
  InboundMessage      — Message plus the envelope fields only the HTTP layer reads
  Diagnostics         — Status / Diagnostic-Code / Action parsed from a body
  ExtractedAddress    — one failed recipient with its attributed diagnostics
  ProcessEmailResponse / ProcessEmailError — HTTP response envelopes

All models serialize with camelCase aliases (messageId, contentType,
failureReason, ...) and accept either the alias or the field name on input.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


_CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "ignore",
}


class AddressSource(str, Enum):
    HEADER = "header"
    DSN_FINAL_RECIPIENT = "dsn-final-recipient"
    DSN_ORIGINAL_RECIPIENT = "dsn-original-recipient"
    BOUNCE_PATTERN = "bounce-pattern"
    ATTACHMENT_HEADER = "attachment-header"
    ATTACHMENT_DSN_FINAL_RECIPIENT = "attachment-dsn-final-recipient"
    ATTACHMENT_DSN_ORIGINAL_RECIPIENT = "attachment-dsn-original-recipient"
    ATTACHMENT_BOUNCE_PATTERN = "attachment-bounce-pattern"

    def as_attachment(self) -> "AddressSource":
        """Return the attachment-scoped counterpart of a top-level source."""
        if self.value.startswith("attachment-"):
            return self
        return AddressSource(f"attachment-{self.value}")


class FailureReason(str, Enum):
    USER_NOT_FOUND = "User not found"
    MAILBOX_FULL = "Mailbox full"
    DOMAIN_NOT_FOUND = "Domain not found"
    CONNECTION_FAILED = "Connection failed"
    BLOCKED = "Blocked or blacklisted"
    INVALID_ADDRESS = "Invalid address format"
    RELAY_DENIED = "Relay denied"
    MESSAGE_TOO_LARGE = "Message too large"
    DELIVERY_FAILED = "Delivery failed"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class Attachment(BaseModel):
    """
    A single attachment as handed over by the mail connector.

    content is text: either the raw attachment or its base64 encoding.
    The declared content_type is a hint only; the encoding is inferred.
    """
    model_config = _CAMEL_CONFIG

    name: str = ""
    content_type: str = ""
    content: str = ""


class Message(BaseModel):
    """A bounce notification to extract failed recipients from."""
    model_config = _CAMEL_CONFIG

    body: str = ""
    headers: dict[str, str] = {}
    attachments: list[Attachment] = []


class InboundMessage(Message):
    """
    Provider-agnostic inbound message produced by the message adapter.

    message_id is optional at the model level so that the router can answer
    a missing id with its own 400 payload instead of a validation error.
    """
    message_id: Optional[str] = None
    subject: Optional[str] = None
    sender: Optional[str] = None
    received_date_time: Optional[str] = None


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class Diagnostics(BaseModel):
    model_config = _CAMEL_CONFIG

    status_code: Optional[str] = None
    diagnostic_code: Optional[str] = None
    action: Optional[str] = None


class ExtractedAddress(BaseModel):
    """One failed recipient address, lowercased and deduplicated per message."""
    model_config = _CAMEL_CONFIG

    address: str
    failure_reason: FailureReason = FailureReason.DELIVERY_FAILED
    diagnostic_code: Optional[str] = None
    status_code: Optional[str] = None
    source: AddressSource
    attachment_name: Optional[str] = None


class ProcessEmailResponse(BaseModel):
    model_config = _CAMEL_CONFIG

    success: bool = True
    message_id: str
    extracted_addresses: list[ExtractedAddress] = Field(default_factory=list)
    processing_details: str


class ProcessEmailError(BaseModel):
    model_config = _CAMEL_CONFIG

    success: bool = False
    error: str
