"""Email sources: a Gmail-backed one and a canned one used when Gmail is not configured.

The source is chosen once at startup by :func:`select_email_source`. A configured
source that fails at request time logs the failure and serves the canned data,
so callers never need to tell "unavailable" from "failed".
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import requests

from taskflow.domains.integrations.services.email_parsing import EmailMessage, EmailThread

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_API = "https://gmail.googleapis.com/gmail/v1/users/me"
ACTIONABLE_QUERY = (
    'is:unread (TODO OR "follow up" OR "action required" OR "please review" '
    'OR "deadline" OR "urgent")'
)
MAX_BODY_CHARS = 1000


class EmailSourceError(Exception):
    """Raised when an OAuth exchange cannot complete."""


@dataclass
class FetchResult:
    items: List[Any] = field(default_factory=list)
    live: bool = False


def canned_emails(now: Optional[datetime] = None) -> List[EmailMessage]:
    now = now or datetime.utcnow()
    return [
        EmailMessage(
            id="mock-1",
            thread_id="mock-thread-1",
            subject="Please review the quarterly report",
            body="Hi, could you please review the Q4 report and provide feedback by Friday? Thanks!",
            sender="manager@company.com",
            date=now - timedelta(hours=5),
            labels=["IMPORTANT"],
        ),
        EmailMessage(
            id="mock-2",
            thread_id="mock-thread-2",
            subject="Action required: Update project timeline",
            body=(
                "The project timeline needs to be updated with the new deadline. "
                "Please complete this ASAP."
            ),
            sender="team@company.com",
            date=now - timedelta(hours=3),
            labels=["INBOX"],
        ),
        EmailMessage(
            id="mock-3",
            thread_id="mock-thread-3",
            subject="Follow up on client meeting",
            body=(
                "TODO: Send the proposal to the client and schedule a follow-up meeting "
                "for next week. We agreed to keep the current budget."
            ),
            sender="sales@company.com",
            date=now - timedelta(hours=1),
            labels=["INBOX"],
        ),
    ]


def canned_threads(now: Optional[datetime] = None) -> List[EmailThread]:
    return [
        EmailThread(id=email.thread_id or email.id, subject=email.subject, messages=[email])
        for email in canned_emails(now)
    ]


class EmailSource:
    """Interface shared by both variants."""

    name = "email"
    ready = False

    def auth_url(self, state: str) -> Optional[str]:
        return None

    def exchange_code(self, code: str) -> Dict[str, Any]:
        raise EmailSourceError("Gmail integration not configured")

    def actionable_emails(self, max_results: int = 10, access_token: str | None = None) -> FetchResult:
        raise NotImplementedError

    def search_threads(self, query: str, max_results: int = 20, access_token: str | None = None) -> FetchResult:
        raise NotImplementedError

    def get_thread(self, thread_id: str, access_token: str | None = None) -> Optional[EmailThread]:
        raise NotImplementedError


class CannedEmailSource(EmailSource):
    """Fixed sample mail for installs without Gmail credentials."""

    name = "canned"
    ready = False

    def actionable_emails(self, max_results: int = 10, access_token: str | None = None) -> FetchResult:
        return FetchResult(items=canned_emails()[:max_results], live=False)

    def search_threads(self, query: str, max_results: int = 20, access_token: str | None = None) -> FetchResult:
        needle = (query or "").lower()
        threads = [
            thread
            for thread in canned_threads()
            if not needle
            or needle in thread.subject.lower()
            or any(needle in message.body.lower() for message in thread.messages)
        ]
        return FetchResult(items=threads[:max_results], live=False)

    def get_thread(self, thread_id: str, access_token: str | None = None) -> Optional[EmailThread]:
        return next((t for t in canned_threads() if t.id == thread_id), None)


class GmailEmailSource(EmailSource):
    """Reads mail through the Gmail REST API with a per-user OAuth access token."""

    name = "gmail"
    ready = True

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: List[str],
        default_token: str = "",
        timeout: int = 30,
        http: Any = requests,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.default_token = default_token
        self.timeout = timeout
        self.http = http
        self._fallback = CannedEmailSource()

    def auth_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
            "code": code,
        }
        try:
            resp = self.http.post(GOOGLE_TOKEN_URL, data=payload, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            logger.error("Gmail token exchange failed: %s", e)
            raise EmailSourceError("Failed to exchange authorization code") from e

    def _get(self, path: str, token: str, params: Mapping[str, Any] | None = None) -> dict:
        resp = self.http.get(
            f"{GMAIL_API}/{path}",
            headers={"Authorization": f"Bearer {token}"},
            params=dict(params or {}),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def actionable_emails(self, max_results: int = 10, access_token: str | None = None) -> FetchResult:
        token = access_token or self.default_token
        if not token:
            logger.warning("No Gmail token for request; serving sample emails")
            return self._fallback.actionable_emails(max_results)
        try:
            listing = self._get("messages", token, {"q": ACTIONABLE_QUERY, "maxResults": max_results})
            emails = []
            for ref in (listing.get("messages") or [])[:max_results]:
                message = self._get(f"messages/{ref['id']}", token, {"format": "full"})
                emails.append(parse_gmail_message(message))
            return FetchResult(items=emails, live=True)
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("Gmail fetch failed, serving sample emails: %s", e)
            return self._fallback.actionable_emails(max_results)

    def search_threads(self, query: str, max_results: int = 20, access_token: str | None = None) -> FetchResult:
        token = access_token or self.default_token
        if not token:
            return self._fallback.search_threads(query, max_results)
        try:
            listing = self._get("threads", token, {"q": query, "maxResults": max_results})
            threads = [
                self._fetch_thread(ref["id"], token)
                for ref in (listing.get("threads") or [])[:max_results]
            ]
            return FetchResult(items=threads, live=True)
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("Gmail thread search failed, serving sample threads: %s", e)
            return self._fallback.search_threads(query, max_results)

    def get_thread(self, thread_id: str, access_token: str | None = None) -> Optional[EmailThread]:
        token = access_token or self.default_token
        if not token:
            return self._fallback.get_thread(thread_id)
        try:
            return self._fetch_thread(thread_id, token)
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("Gmail thread %s unavailable: %s", thread_id, e)
            return self._fallback.get_thread(thread_id)

    def _fetch_thread(self, thread_id: str, token: str) -> EmailThread:
        data = self._get(f"threads/{thread_id}", token, {"format": "full"})
        messages = [parse_gmail_message(item) for item in data.get("messages") or []]
        subject = messages[0].subject if messages else "No Subject"
        return EmailThread(id=data.get("id", thread_id), subject=subject, messages=messages)


def _decode_body(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")


def _extract_text(payload: dict) -> str:
    body = payload.get("body") or {}
    if body.get("data"):
        return _decode_body(body["data"])
    for part in payload.get("parts") or []:
        if part.get("mimeType") == "text/plain" and (part.get("body") or {}).get("data"):
            return _decode_body(part["body"]["data"])
    for part in payload.get("parts") or []:
        nested = _extract_text(part)
        if nested:
            return nested
    return ""


def parse_gmail_message(message: dict) -> EmailMessage:
    """Map a Gmail API ``users.messages.get`` resource to an :class:`EmailMessage`."""
    payload = message.get("payload") or {}
    headers = {h.get("name", "").lower(): h.get("value", "") for h in payload.get("headers") or []}
    body = _extract_text(payload).replace("\r\n", "\n")
    while "\n\n\n" in body:
        body = body.replace("\n\n\n", "\n\n")
    internal = message.get("internalDate")
    sent = datetime.utcfromtimestamp(int(internal) / 1000) if internal else datetime.utcnow()
    return EmailMessage(
        id=message["id"],
        thread_id=message.get("threadId"),
        subject=headers.get("subject") or "No Subject",
        body=body.strip()[:MAX_BODY_CHARS],
        sender=headers.get("from") or "Unknown Sender",
        date=sent,
        labels=list(message.get("labelIds") or []),
    )


def select_email_source(config: Mapping[str, Any]) -> EmailSource:
    if config.get("GOOGLE_CLIENT_ID") and config.get("GOOGLE_CLIENT_SECRET"):
        return GmailEmailSource(
            client_id=config["GOOGLE_CLIENT_ID"],
            client_secret=config["GOOGLE_CLIENT_SECRET"],
            redirect_uri=config.get("GOOGLE_REDIRECT_URI", ""),
            scopes=list(config.get("GMAIL_SCOPES") or []),
            default_token=config.get("GMAIL_ACCESS_TOKEN", ""),
            timeout=int(config.get("INTEGRATION_TIMEOUT_SECONDS", 30)),
        )
    return CannedEmailSource()
