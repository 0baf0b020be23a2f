"""
Core services for the wellness coach.

This package contains the guardrail, the snapshot builder, the coach client
and the chat session that ties them together.
"""

from .coach_client import (
    CoachClient,
    CoachServiceError,
    GuardrailViolation,
    InvalidResponse,
    NetworkFailure,
)
from .conversation_guard import ConversationGuard
from .conversation_session import ConversationSession
from .snapshot_builder import GoalStatus, SnapshotBuilder, WellnessSnapshot, WorkoutDigest

__all__ = [
    "CoachClient",
    "CoachServiceError",
    "ConversationGuard",
    "ConversationSession",
    "GoalStatus",
    "GuardrailViolation",
    "InvalidResponse",
    "NetworkFailure",
    "SnapshotBuilder",
    "WellnessSnapshot",
    "WorkoutDigest",
]
