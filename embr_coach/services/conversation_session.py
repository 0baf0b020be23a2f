"""
Chat session bookkeeping for the wellness coach.

Callers must not overlap ``send`` calls on one session: disable submission
while ``is_processing`` is true.
"""

from collections.abc import Sequence

import structlog

from embr_coach.domain.models import (
    ChatMessage,
    GoalRecord,
    HealthRecord,
    MessageSender,
    PrivacySettings,
    WorkoutRecord,
)
from embr_coach.services.coach_client import CoachClient, CoachServiceError
from embr_coach.services.snapshot_builder import SnapshotBuilder

logger = structlog.get_logger(__name__)

GREETING = (
    "Hi! I'm your EmbrHealth coach. Ask about your recent activity, heart trends, "
    "sleep recovery, or VO₂ max progress and I'll guide you with health-focused tips."
)
APOLOGY_PREFIX = "I'm sorry, I couldn't process that request."


class ConversationSession:
    """Append-only message history for one chat, driving CoachClient calls."""

    def __init__(
        self,
        client: CoachClient | None = None,
        builder: SnapshotBuilder | None = None,
        privacy: PrivacySettings | None = None,
    ) -> None:
        self.client = client or CoachClient()
        self.builder = builder or SnapshotBuilder(self.client.config.snapshot_window)
        self.privacy = privacy
        self.is_processing = False
        self.last_error: CoachServiceError | None = None
        self._messages: list[ChatMessage] = []
        self.logger = logger.bind(component="conversation_session")
        self.bootstrap()

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def error_message(self) -> str | None:
        return self.last_error.user_message if self.last_error else None

    def bootstrap(self) -> None:
        if self._messages:
            return
        self._messages.append(ChatMessage(sender=MessageSender.COACH, text=GREETING))

    async def send(
        self,
        text: str,
        records: Sequence[HealthRecord],
        goals: Sequence[GoalRecord],
        workouts: Sequence[WorkoutRecord],
    ) -> None:
        trimmed = text.strip()
        if not trimmed:
            return

        self.last_error = None
        history = list(self._messages)
        self._messages.append(ChatMessage(sender=MessageSender.USER, text=trimmed))
        self.is_processing = True

        try:
            snapshot = self.builder.snapshot(records, goals, workouts)
            try:
                reply = await self.client.respond(
                    trimmed, history, snapshot, privacy=self.privacy
                )
            except CoachServiceError as e:
                self.last_error = e
                reply = f"{APOLOGY_PREFIX} {e.user_message}"
                self.logger.info("coach_reply_failed", error_type=type(e).__name__)
            self._messages.append(ChatMessage(sender=MessageSender.COACH, text=reply))
        finally:
            self.is_processing = False
