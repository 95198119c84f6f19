from __future__ import annotations


class TriageError(Exception):
    """Base class for errors raised by the triage package."""


class ProviderError(TriageError):
    """The quote provider answered with an error payload or unusable data."""

    def __init__(self, message: str, *, symbol: str | None = None):
        super().__init__(message)
        self.symbol = symbol


class RateLimitNotice(ProviderError):
    """The quote provider answered with a rate-limit note instead of data."""


class InvalidTransition(TriageError):
    def __init__(self, status: str, action: str):
        super().__init__(f"action {action!r} is not allowed from status {status!r}")
        self.status = status
        self.action = action


class AlertNotFound(TriageError, KeyError):
    def __init__(self, alert_id: str):
        super().__init__(alert_id)
        self.alert_id = alert_id

    def __str__(self) -> str:
        return f"no alert with id {self.alert_id!r}"
