"""Shared fixtures: a fully populated snapshot and a recording fake endpoint."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from embr_coach.domain.models import GoalCategory
from embr_coach.services.snapshot_builder import GoalStatus, WellnessSnapshot, WorkoutDigest

Handler = Callable[[httpx.Request], httpx.Response]


class FakeEndpoint:
    """Stand-in for the completion endpoint that records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Handler = lambda request: ok_response("Great job!")

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def reply_text(self, text: str) -> None:
        self.handler = lambda request: ok_response(text)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


def ok_response(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "output": [{"type": "message", "content": [{"type": "output_text", "text": text}]}],
            "output_text": [text],
        },
    )


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def snapshot() -> WellnessSnapshot:
    return WellnessSnapshot(
        observation_window_days=7,
        average_steps=9200,
        average_active_energy=550.0,
        average_exercise_minutes=38.0,
        average_resting_heart_rate=58.0,
        average_max_heart_rate=170.0,
        average_sleep_hours=7.1,
        average_sleep_efficiency=0.92,
        average_vo2_max=42.5,
        goal_statuses=[GoalStatus(category=GoalCategory.STEPS, completion_ratio=0.9, target=10000)],
        workouts=WorkoutDigest(
            total_duration_seconds=3600, count=4, calorie_burn=2200, predominant_types=["Run"]
        ),
    )


@pytest.fixture
def empty_snapshot() -> WellnessSnapshot:
    return WellnessSnapshot(observation_window_days=0)
