"""
Function-key authentication for the bounce processing API.

Callers (a mail-flow automation or connector) send a shared key in the
X-Functions-Key header. The expected key is read from
PROCESS_EMAIL_FUNCTION_KEY on every request so that rotating it only needs
an environment change.
"""

import hmac
import logging
import os
from typing import Optional

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)


def get_function_key() -> str:
    """Return the configured function key, or "" when unset."""
    return os.getenv("PROCESS_EMAIL_FUNCTION_KEY", "")


def verify_function_key(x_functions_key: Optional[str] = Header(None)) -> None:
    """
    Verify that the request carries the configured function key.

    Raises:
        HTTPException: 401 if the key is unconfigured, missing, or wrong
    """
    expected = get_function_key()
    if not expected:
        logger.warning(
            "PROCESS_EMAIL_FUNCTION_KEY is not configured — all process-email "
            "requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Function key not configured")

    if not x_functions_key or not hmac.compare_digest(x_functions_key, expected):
        raise HTTPException(status_code=401, detail="Invalid function key")
