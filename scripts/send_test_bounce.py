#!/usr/bin/env python3
"""
Dev helper: send a sample bounce notification to the local Bounce Extractor API.

Builds a process-email payload for the chosen provider format, optionally
attaches a real .eml / .txt file (base64-encoded), and POST-s it to the
/api/process-email endpoint.

Usage
-----
# Basic — direct payload with a generated DSN body, targeting localhost:8000
python scripts/send_test_bounce.py

# Attach a saved bounce
python scripts/send_test_bounce.py --file path/to/bounce.eml

# Use the Microsoft Graph message format instead of direct
python scripts/send_test_bounce.py --provider graph

# Print the payload without sending it
python scripts/send_test_bounce.py --dry-run

Environment / .env
------------------
PROCESS_EMAIL_FUNCTION_KEY   Shared key sent as X-Functions-Key (required).
MESSAGE_PROVIDER             Payload format to use (default: direct).
                             Overridden by --provider flag.

Variables are read from a .env file in the project root or backend/ if present.
"""

import argparse
import base64
import json
import os
import sys
import textwrap
import uuid
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Sample bounce
# ---------------------------------------------------------------------------

def _make_sample_body(recipient: str) -> str:
    """Return a minimal RFC 3464 style bounce body for recipient."""
    return textwrap.dedent(f"""\
        This is an automatically generated Delivery Status Notification.

        Delivery to the following recipient failed permanently:

        {recipient}

        Final-Recipient: rfc822; {recipient}
        Action: failed
        Status: 5.1.1
        Diagnostic-Code: smtp; 550 5.1.1 User unknown
    """)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def _build_direct_payload(
    message_id: str,
    recipient: str,
    body: str,
    attachment: dict | None,
) -> dict:
    """
    Build a direct payload (camelCase keys).

      messageId, subject, from, body, headers{}, attachments[]
      attachments[] — {name, contentType, content (base64)}
    """
    return {
        "messageId": message_id,
        "subject": "Delivery Status Notification (Failure)",
        "from": "mailer-daemon@example.com",
        "body": body,
        "headers": {"X-Failed-Recipients": recipient},
        "attachments": [
            {
                "name": attachment["name"],
                "contentType": f"{attachment['content_type']}; base64",
                "content": attachment["content"],
            }
        ] if attachment else [],
    }


def _build_graph_payload(
    message_id: str,
    recipient: str,
    body: str,
    attachment: dict | None,
) -> dict:
    """
    Build a Microsoft Graph message resource.

      id, subject, from.emailAddress.address, body.content,
      internetMessageHeaders[] — {name, value}
      attachments[]            — {name, contentType, contentBytes (base64)}
    """
    return {
        "id": message_id,
        "subject": "Undeliverable: test message",
        "from": {"emailAddress": {"address": "postmaster@example.com"}},
        "body": {"content": body, "contentType": "text"},
        "internetMessageHeaders": [{"name": "X-Failed-Recipients", "value": recipient}],
        "attachments": [
            {
                "name": attachment["name"],
                "contentType": attachment["content_type"],
                "contentBytes": attachment["content"],
            }
        ] if attachment else [],
    }


_PAYLOAD_BUILDERS = {
    "direct": _build_direct_payload,
    "graph": _build_graph_payload,
}


def _detect_content_type(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    return {
        ".eml": "message/rfc822",
        ".txt": "text/plain",
    }.get(ext, "application/octet-stream")


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_bounce.py",
        description=textwrap.dedent("""\
            Send a sample bounce notification to the Bounce Extractor API.

            Reads PROCESS_EMAIL_FUNCTION_KEY from the environment or a .env
            file in the project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--provider",
        default=os.getenv("MESSAGE_PROVIDER", "direct"),
        choices=list(_PAYLOAD_BUILDERS),
        help="Payload format to use (default: direct)",
    )
    parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="Path to a .eml or .txt file to attach.",
    )
    parser.add_argument(
        "--recipient",
        default="invalid.user@example.com",
        help="Failed recipient used in the generated body (default: invalid.user@example.com)",
    )
    parser.add_argument(
        "--key",
        default=None,
        metavar="KEY",
        help="Override the function key. Defaults to PROCESS_EMAIL_FUNCTION_KEY.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    key = args.key or os.getenv("PROCESS_EMAIL_FUNCTION_KEY", "")
    if not key and not args.dry_run:
        print(
            "ERROR: No function key found.\n"
            "Set PROCESS_EMAIL_FUNCTION_KEY in your environment or .env file, "
            "or pass --key.",
            file=sys.stderr,
        )
        return 1

    attachment = None
    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        file_content = file_path.read_bytes()
        attachment = {
            "name": file_path.name,
            "content_type": _detect_content_type(file_path.name),
            "content": base64.b64encode(file_content).decode(),
        }
        print(f"Attaching file: {file_path} ({len(file_content):,} bytes)")

    message_id = f"test-{uuid.uuid4().hex[:8]}"
    payload = _PAYLOAD_BUILDERS[args.provider](
        message_id=message_id,
        recipient=args.recipient,
        body=_make_sample_body(args.recipient),
        attachment=attachment,
    )

    endpoint = f"{args.url.rstrip('/')}/api/process-email"

    print(f"\nProvider  : {args.provider}")
    print(f"Endpoint  : {endpoint}")
    print(f"MessageId : {message_id}")
    print(f"Recipient : {args.recipient}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    try:
        response = httpx.post(
            endpoint,
            params={"provider": args.provider},
            json=payload,
            headers={"X-Functions-Key": key},
            timeout=30,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn bounce_extractor.main:app --reload",
            file=sys.stderr,
        )
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
