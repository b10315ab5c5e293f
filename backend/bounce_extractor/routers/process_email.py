"""
Process-email router.

Accepts a delivery-failure notification forwarded by a mail connector and
returns the failed recipient addresses found in it.

The endpoint is provider-agnostic: it normalises the raw payload via the
message_adapter service, so switching from direct payloads to Microsoft
Graph messages only requires MESSAGE_PROVIDER (or ?provider=graph).

Environment variables
---------------------
PROCESS_EMAIL_FUNCTION_KEY  Shared key checked in the X-Functions-Key header.
MESSAGE_PROVIDER            Which normaliser to use (default: "direct").
                            Supported values: "direct", "graph".

Endpoints:
  POST /process-email   — extract failed addresses (auth: X-Functions-Key)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from bounce_extractor.auth import verify_function_key
from bounce_extractor.models.bounce import ProcessEmailError, ProcessEmailResponse
from bounce_extractor.services.address_extractor import extract_failed_addresses
from bounce_extractor.services.message_adapter import normalize_payload

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ProcessEmailError(error=error).model_dump(by_alias=True),
    )


@router.post(
    "/process-email",
    response_model=ProcessEmailResponse,
    responses={400: {"model": ProcessEmailError}, 500: {"model": ProcessEmailError}},
    dependencies=[Depends(verify_function_key)],
)
async def process_email(
    request: Request,
    provider: Optional[str] = Query(None),
):
    """
    Extract failed recipient addresses from a bounce notification.

    The JSON body is read here rather than declared as a parameter so that an
    unparseable body gets the same 500 envelope as any other failure.

    Returns 400 when the payload carries no message id (the extractor is not
    run), 500 when parsing, normalisation or extraction fails unexpectedly.
    """
    logger.info("Processing email delivery failure notification")

    try:
        payload = await request.json()
        message = normalize_payload(payload, provider=provider)

        if not message.message_id:
            return _error_response(400, "Missing required field: messageId")

        extracted = extract_failed_addresses(message)
    except Exception as exc:
        logger.exception("Error processing email: %s", exc)
        return _error_response(500, str(exc) or "Internal server error")

    logger.info(
        "Successfully processed message %s, found %d addresses",
        message.message_id,
        len(extracted),
    )

    return ProcessEmailResponse(
        message_id=message.message_id,
        extracted_addresses=extracted,
        processing_details=f"Extracted {len(extracted)} failed address(es) from message",
    )
