"""Notification dispatch for fired rules.

The evaluator hands one batch of ``NotificationFiringEvent`` objects to a
``Dispatcher``. ``NotificationDispatcher`` fans each event out to its
channels; delivery is best effort and failures are only logged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import requests
from prometheus_client import Counter

from .config import Settings
from .models.notification_rule import RuleKind
from .rules import NotificationFiringEvent

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

NOTIFICATIONS_TOTAL = Counter(
    "notifications_total", "Notification delivery attempts", ["channel", "status"]
)


@dataclass(frozen=True)
class DispatchResult:
    rule_id: int
    channel: str
    success: bool
    error: Optional[str] = None


class Dispatcher(Protocol):
    def dispatch(self, events: Sequence[NotificationFiringEvent]) -> list[DispatchResult]: ...


def format_price(value: float) -> str:
    # Small coin prices need more than two decimals to be meaningful
    if value and abs(value) < 1:
        whole, _, frac = f"{value:.6f}".rstrip("0").partition(".")
        return f"${whole}.{frac.ljust(2, '0')}"
    return f"${value:,.2f}"


def _format_pct(value: float) -> str:
    return f"{value:g}%"


def describe_rule(kind: RuleKind, value: float) -> str:
    if kind is RuleKind.PRICE_ABOVE:
        return f"Price went above {format_price(value)}"
    if kind is RuleKind.PRICE_BELOW:
        return f"Price went below {format_price(value)}"
    if kind is RuleKind.PCT_INCREASE:
        return f"Increased by {_format_pct(value)} or more"
    return f"Decreased by {_format_pct(abs(value))} or more"


def render_email(event: NotificationFiringEvent) -> tuple[str, str]:
    """Return (subject, html body) for a fired rule."""
    subject = f"DLATC Alert: {event.asset_name} ({event.asset_symbol}) Rule Triggered!"
    body = (
        "<h2>Don't Look At The Chart Alert!</h2>"
        f"<p>Your alert rule for <strong>{event.asset_name} ({event.asset_symbol})"
        "</strong> was triggered.</p>"
        "<ul>"
        f"<li><strong>Rule:</strong> {describe_rule(event.rule_kind, event.rule_value)}</li>"
        f"<li><strong>Current Price:</strong> {format_price(event.triggering_price)}</li>"
        "</ul>"
        f"<p>Rule ID: {event.rule_id}</p>"
        "<hr><p><small>To manage your alerts, visit the dashboard.</small></p>"
    )
    return subject, body


class Notifier(ABC):
    """A single delivery channel."""

    channel: str = "unknown"

    @abstractmethod
    def send(self, event: NotificationFiringEvent) -> DispatchResult:
        ...


class ResendEmailNotifier(Notifier):
    channel = "email"

    def __init__(self, api_key: str | None, from_address: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.timeout = timeout

    def send(self, event: NotificationFiringEvent) -> DispatchResult:
        if not self.api_key:
            return DispatchResult(event.rule_id, self.channel, False, "RESEND_API_KEY not set")
        subject, html = render_email(event)
        resp = requests.post(
            RESEND_API_URL,
            json={
                "from": f"DLATC Alerts <{self.from_address}>",
                "to": [event.email],
                "subject": subject,
                "html": html,
            },
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            return DispatchResult(
                event.rule_id, self.channel, False, f"HTTP {resp.status_code}"
            )
        return DispatchResult(event.rule_id, self.channel, True)


class NotificationDispatcher:
    def __init__(self, channels: Sequence[Notifier]) -> None:
        self.channels = list(channels)

    def dispatch(self, events: Sequence[NotificationFiringEvent]) -> list[DispatchResult]:
        results: list[DispatchResult] = []
        for event in events:
            for notifier in self.channels:
                try:
                    result = notifier.send(event)
                except Exception as exc:
                    result = DispatchResult(event.rule_id, notifier.channel, False, str(exc))
                if not result.success:
                    logger.warning(
                        "%s notification for rule %s to user %s failed: %s",
                        notifier.channel,
                        event.rule_id,
                        event.user_id,
                        result.error,
                    )
                NOTIFICATIONS_TOTAL.labels(
                    channel=notifier.channel,
                    status="success" if result.success else "failure",
                ).inc()
                results.append(result)
        return results


def build_dispatcher_from_env(settings: Settings | None = None) -> NotificationDispatcher:
    s = settings or Settings.from_env()
    if not s.resend_api_key:
        logger.warning("RESEND_API_KEY is not set; email notifications will fail")
    return NotificationDispatcher([ResendEmailNotifier(s.resend_api_key, s.email_from)])
