"""
Offline walkthrough of the wellness coach pipeline.

This script exercises:
1. Configuration loading and logging setup
2. Snapshot building over two weeks of sample records
3. A coaching exchange that falls back to the local summary (no API key)
4. A guardrail rejection

Run with: uv run python coach_walkthrough.py
"""

import asyncio
from datetime import UTC, date, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from embr_coach.config import get_config
from embr_coach.domain.models import (
    GoalCategory,
    GoalRecord,
    HealthRecord,
    MessageSender,
    WorkoutRecord,
)
from embr_coach.observability import configure_logging
from embr_coach.services.coach_client import CoachClient
from embr_coach.services.conversation_session import ConversationSession

console = Console()


def sample_records(days: int = 14) -> list[HealthRecord]:
    today = date.today()
    return [
        HealthRecord(
            day=today - timedelta(days=offset),
            step_count=7_500 + (offset % 5) * 600,
            active_energy=420.0 + offset * 6,
            active_minutes=28 + offset % 4,
            distance_km=5.2 + (offset % 3) * 0.4,
            resting_heart_rate=61.0 + offset % 3,
            max_heart_rate=165.0 + offset % 7,
            sleep_hours=6.8 + (offset % 4) * 0.2,
            sleep_efficiency=0.86 + (offset % 3) * 0.02,
            vo2_max=41.5 if offset % 7 == 0 else None,
        )
        for offset in range(days)
    ]


def sample_goals() -> list[GoalRecord]:
    return [
        GoalRecord(title="Daily steps", category=GoalCategory.STEPS, target_value=10_000,
                   progress_value=8_200),
        GoalRecord(title="Weekly workouts", category=GoalCategory.WORKOUTS, target_value=3,
                   progress_value=4),
        GoalRecord(title="Old sleep goal", category=GoalCategory.SLEEP, target_value=8,
                   progress_value=6, is_archived=True),
    ]


def sample_workouts() -> list[WorkoutRecord]:
    now = datetime.now(UTC)
    labels = ["Run", "Strength", "Run", "Cycling", "Run", "Strength"]
    return [
        WorkoutRecord(
            performed_at=now - timedelta(days=index * 2),
            duration_seconds=1_800 + index * 300,
            calories_burned=250 + index * 40,
            workout_type=label,
        )
        for index, label in enumerate(labels)
    ]


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    console.print(f"Configuration loaded for {config.environment} environment", style="green")

    records, goals, workouts = sample_records(), sample_goals(), sample_workouts()

    # Offline on purpose: no credential at any layer
    client = CoachClient(config.coach, credential_resolvers=[])
    session = ConversationSession(client=client)

    snapshot = session.builder.snapshot(records, goals, workouts)
    console.print(Panel(snapshot.sanitized_context(), title="Wellness snapshot", style="blue"))

    await session.send("How is my recovery looking this week?", records, goals, workouts)
    await session.send("My password is hunter2, can you store it?", records, goals, workouts)

    table = Table(title="Conversation")
    table.add_column("Sender", style="cyan")
    table.add_column("Message")
    for message in session.messages:
        style = "green" if message.sender == MessageSender.COACH else None
        table.add_row(message.sender.value, message.text, style=style)
    console.print(table)

    if session.error_message:
        console.print(f"Last error: {session.error_message}", style="red")


if __name__ == "__main__":
    asyncio.run(main())
