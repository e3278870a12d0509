"""Pattern matching over email text: action items, priorities, due dates, context."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

MAX_ACTION_ITEMS = 5
DESCRIPTION_PREVIEW = 300

ACTION_PATTERNS = (
    re.compile(r"(?:please|could you|can you|need to|should|must)\s+([^.!?]+)", re.IGNORECASE),
    re.compile(r"(?:todo|to do|action item|task):\s*([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"(?:deadline|due|by)\s+([^.!?\n]+)", re.IGNORECASE),
)
DECISION_PATTERNS = (
    re.compile(r"(?:we decided|decided to|we agreed|agreed to|going with|approved)\s+([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"(?:decision|resolution):\s*([^.!?\n]+)", re.IGNORECASE),
)
URGENT_KEYWORDS = ("urgent", "asap", "immediately", "critical", "deadline")
IMPORTANT_SENDERS = ("boss", "manager", "client", "customer")

_DUE = r"\b(?:due|deadline|by)\s+"
_FULL_DATE = re.compile(_DUE + r"(\d{1,2}/\d{1,2}/\d{4})", re.IGNORECASE)
_SHORT_DATE = re.compile(_DUE + r"(\d{1,2}/\d{1,2})\b", re.IGNORECASE)
_MONTH_DAY = re.compile(_DUE + r"([A-Za-z]+\s+\d{1,2})\b", re.IGNORECASE)
_WEEKDAY = re.compile(
    _DUE + r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday|today|tomorrow)\b",
    re.IGNORECASE,
)
_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_REPLY_PREFIX = re.compile(r"^\s*re:\s*", re.IGNORECASE)


@dataclass
class EmailMessage:
    id: str
    subject: str
    body: str
    sender: str
    date: datetime
    labels: List[str] = field(default_factory=list)
    thread_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class EmailThread:
    id: str
    subject: str
    messages: List[EmailMessage] = field(default_factory=list)

    @property
    def participants(self) -> List[str]:
        seen: List[str] = []
        for message in self.messages:
            if message.sender not in seen:
                seen.append(message.sender)
        return seen

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject,
            "participants": self.participants,
            "message_count": len(self.messages),
            "snippet": self.messages[0].body[:120] if self.messages else "",
            "messages": [message.to_dict() for message in self.messages],
        }


@dataclass
class ProjectContext:
    summary: str
    participants: List[str]
    key_insights: List[str]
    action_items: List[str]
    decisions: List[str]
    next_steps: List[str]
    timespan: dict

    def to_dict(self) -> dict:
        return asdict(self)


def _matches(patterns: Iterable[re.Pattern], text: str) -> List[str]:
    found: List[str] = []
    for pattern in patterns:
        for match in pattern.finditer(text or ""):
            item = match.group(0).strip()
            if item and item not in found:
                found.append(item)
    return found


def extract_action_items(body: str) -> List[str]:
    return _matches(ACTION_PATTERNS, body)[:MAX_ACTION_ITEMS]


def extract_decisions(body: str) -> List[str]:
    return _matches(DECISION_PATTERNS, body)[:MAX_ACTION_ITEMS]


def suggest_priority(email: EmailMessage) -> str:
    content = f"{email.subject} {email.body}".lower()
    if any(keyword in content for keyword in URGENT_KEYWORDS):
        return "high"
    sender = (email.sender or "").lower()
    if any(name in sender for name in IMPORTANT_SENDERS):
        return "high"
    if "IMPORTANT" in (email.labels or []):
        return "medium"
    return "low"


def _upcoming(candidate: date, today: date) -> date:
    if candidate >= today:
        return candidate
    try:
        return candidate.replace(year=candidate.year + 1)
    except ValueError:
        # Feb 29 has no counterpart next year
        return candidate + timedelta(days=365)


def _parse_month_day(text: str, today: date) -> Optional[date]:
    for fmt in ("%B %d %Y", "%b %d %Y"):
        try:
            parsed = datetime.strptime(f"{text} {today.year}", fmt).date()
        except ValueError:
            continue
        return _upcoming(parsed, today)
    return None


def extract_due_date(body: str, today: date) -> Optional[date]:
    """First date-like phrase after "due", "deadline" or "by", resolved against ``today``."""
    text = body or ""
    for match in _FULL_DATE.finditer(text):
        try:
            return datetime.strptime(match.group(1), "%m/%d/%Y").date()
        except ValueError:
            continue
    for match in _SHORT_DATE.finditer(text):
        try:
            parsed = datetime.strptime(f"{match.group(1)}/{today.year}", "%m/%d/%Y").date()
        except ValueError:
            continue
        return _upcoming(parsed, today)
    for match in _MONTH_DAY.finditer(text):
        parsed = _parse_month_day(match.group(1), today)
        if parsed:
            return parsed
    match = _WEEKDAY.search(text)
    if match:
        word = match.group(1).lower()
        if word == "today":
            return today
        if word == "tomorrow":
            return today + timedelta(days=1)
        days_ahead = (_WEEKDAYS.index(word) - today.weekday()) % 7
        return today + timedelta(days=days_ahead)
    return None


def task_title(subject: str) -> str:
    return _REPLY_PREFIX.sub("", subject or "").strip() or "Untitled email"


def email_to_task_suggestion(email: EmailMessage, today: date) -> dict:
    actions = extract_action_items(email.body)
    preview = email.body[:DESCRIPTION_PREVIEW]
    if len(email.body) > DESCRIPTION_PREVIEW:
        preview += "..."
    description = f"Email from: {email.sender}\n\nContent: {preview}\n\nAction items:\n" + "\n".join(
        f"- {item}" for item in actions
    )
    due = extract_due_date(email.body, today)
    return {
        "title": task_title(email.subject),
        "description": description,
        "priority": suggest_priority(email),
        "due_date": datetime.combine(due, datetime.min.time()) if due else None,
        "metadata": {
            "source": "gmail",
            "email_id": email.id,
            "sender": email.sender,
            "original_date": email.date.isoformat(),
        },
    }


def analyze_project_context(threads: List[EmailThread]) -> ProjectContext:
    """Fold a set of threads into a summary plus the people, actions and decisions in it."""
    messages = [message for thread in threads for message in thread.messages]
    if not messages:
        return ProjectContext(
            summary="No email context available.",
            participants=[],
            key_insights=[],
            action_items=[],
            decisions=[],
            next_steps=[],
            timespan={"start": None, "end": None},
        )

    participants: List[str] = []
    action_items: List[str] = []
    decisions: List[str] = []
    for message in sorted(messages, key=lambda m: m.date):
        if message.sender not in participants:
            participants.append(message.sender)
        for item in extract_action_items(message.body):
            if item not in action_items:
                action_items.append(item)
        for item in extract_decisions(message.body):
            if item not in decisions:
                decisions.append(item)

    start = min(message.date for message in messages)
    end = max(message.date for message in messages)
    urgent = [m for m in messages if suggest_priority(m) == "high"]
    topics = "; ".join(task_title(thread.subject) for thread in threads)

    key_insights = [f"{len(participants)} participant(s) across {len(threads)} thread(s)"]
    if urgent:
        key_insights.append(f"{len(urgent)} message(s) flagged as high priority")
    if decisions:
        key_insights.append(f"{len(decisions)} decision(s) recorded")

    return ProjectContext(
        summary=(
            f"{len(threads)} email thread(s) with {len(messages)} message(s) "
            f"from {start.date().isoformat()} to {end.date().isoformat()}. Topics: {topics}"
        ),
        participants=participants,
        key_insights=key_insights,
        action_items=action_items,
        decisions=decisions,
        next_steps=[f"Follow up: {item}" for item in action_items[:3]],
        timespan={"start": start.isoformat(), "end": end.isoformat()},
    )
