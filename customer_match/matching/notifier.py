"""Outward notifications (toasts) emitted by a matching session."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Protocol

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()


class NotificationKind(str, Enum):
    DUPLICATE_WARNING = "duplicate_warning"
    VALIDATION_ERROR = "validation_error"
    DUPLICATE_BLOCKED = "duplicate_blocked"
    CUSTOMER_SELECTED = "customer_selected"
    CUSTOMER_CREATED = "customer_created"
    CREATE_FAILED = "create_failed"


class Notification(BaseModel):
    """A user-facing message; rendering is up to the presentation layer."""

    kind: NotificationKind
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(Protocol):
    """Receives notifications from the matching engine."""

    def notify(self, notification: Notification) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the structured log."""

    def notify(self, notification: Notification) -> None:
        logger.info(
            "notification",
            kind=notification.kind.value,
            title=notification.title,
            description=notification.description,
            variant=notification.variant,
        )


class CollectingNotifier:
    """Keeps the most recent notifications in memory (HTTP sessions, tests)."""

    def __init__(self, max_items: int = 50):
        self.max_items = max_items
        self.items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.items.append(notification)
        if len(self.items) > self.max_items:
            del self.items[: len(self.items) - self.max_items]

    def kinds(self) -> list[NotificationKind]:
        return [item.kind for item in self.items]


def similar_customers_found(count: int) -> Notification:
    plural = "s" if count > 1 else ""
    return Notification(
        kind=NotificationKind.DUPLICATE_WARNING,
        title=f"{count} Similar Customer{plural} Found",
        description="Please verify if any of these existing customers match",
    )


def missing_information(message: str) -> Notification:
    return Notification(
        kind=NotificationKind.VALIDATION_ERROR,
        title="Missing Information",
        description=message,
        variant="destructive",
    )


def duplicate_phone(existing_name: str) -> Notification:
    return Notification(
        kind=NotificationKind.DUPLICATE_BLOCKED,
        title="Duplicate Phone Number",
        description=(
            f"A customer with this phone number already exists: {existing_name}"
        ),
        variant="destructive",
    )


def customer_selected(name: str) -> Notification:
    return Notification(
        kind=NotificationKind.CUSTOMER_SELECTED,
        title="Customer Selected",
        description=f"{name} has been selected",
    )


def customer_created(name: str) -> Notification:
    return Notification(
        kind=NotificationKind.CUSTOMER_CREATED,
        title="Customer Added",
        description=f"{name} has been added successfully",
    )


def create_failed(error: str) -> Notification:
    return Notification(
        kind=NotificationKind.CREATE_FAILED,
        title="Error",
        description=f"Failed to create customer: {error or 'Unknown error'}",
        variant="destructive",
    )
