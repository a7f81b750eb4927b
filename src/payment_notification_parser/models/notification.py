"""Raw notification model.

A notification is the unit of work for the parser: the text a payment app
posted, plus the identifier of the app that posted it. Nothing here is
normalised; the parser works on a normalised copy of ``full_text``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationInput(BaseModel):
    """A posted system notification captured for read-only inspection."""

    # Strict so that None or non-string payloads are rejected instead of coerced.
    model_config = ConfigDict(strict=True, frozen=True)

    source_app_id: str = Field(description="Identifier of the application that posted it")
    title: str = Field(default="", description="Notification title")
    body: str = Field(default="", description="Notification text")
    expanded_body: str = Field(default="", description="Expanded (big text) notification body")
    posted_at: datetime | None = Field(
        default=None,
        description="When the notification was posted; anchors year-less timestamps",
    )

    @property
    def full_text(self) -> str:
        """Title, body and expanded body joined by single spaces.

        The expanded body is skipped when it repeats the body verbatim, which
        is what most apps do for short notifications.
        """

        parts = [self.title, self.body]
        if self.expanded_body != self.body:
            parts.append(self.expanded_body)
        return " ".join(p for p in parts if p)
