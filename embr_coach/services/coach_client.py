"""
Wellness coach client for a responses-style chat completion endpoint.

Key architectural decisions:
- Guardrail first: sensitive requests are rejected before anything else runs
- Scrub everything that leaves the process: history and input alike
- Single egress point: one POST per call, no retries
- Graceful degradation: every failure except a guardrail violation becomes a
  deterministic local summary built from the snapshot

Request flow:
    guard -> scrub -> resolve credential -> build payload -> POST -> parse
                            |                                  |
                            +---------- fallback <-------------+
"""

from collections.abc import Sequence
from typing import Literal

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from embr_coach.config import (
    CoachConfig,
    CredentialResolver,
    default_credential_resolvers,
    resolve_credential,
)
from embr_coach.domain.models import (
    ChatMessage,
    MessageSender,
    PrivacySettings,
    WellnessBenchmarks,
)
from embr_coach.domain.result import Result
from embr_coach.services.conversation_guard import ConversationGuard
from embr_coach.services.snapshot_builder import WellnessSnapshot, round_half_up

logger = structlog.get_logger(__name__)

OFFLINE_NOTICE = "Here's a local summary while the network is offline:"
CLOSING_ADVICE = (
    "Consider steady movement, balanced nutrition, hydration, and schedule recovery days. "
    "Reach out to a licensed professional for diagnoses or major changes."
)

COACH_PERSONA = (
    "You are EmbrHealth Coach, an empathetic health and wellness assistant. "
    "Provide educational, non-diagnostic guidance grounded in the supplied activity, "
    "heart rate, sleep, and VO₂ max summaries. Encourage healthy habits, hydration, "
    "recovery, and consult-a-professional language. Never store or request personally "
    "identifiable information and never discuss topics unrelated to personal wellness."
)

# Longest slice of an error body kept in log events
MAX_DIAGNOSTIC_CHARS = 500


class CoachServiceError(Exception):
    """Base class for coach failures. ``user_message`` is safe to show end users."""

    user_message = "The wellness coach is unavailable right now."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


class GuardrailViolation(CoachServiceError):
    user_message = (
        "Your message appears to include sensitive information. "
        "Please remove personal identifiers and try again."
    )


class NetworkFailure(CoachServiceError):
    """Non-200 response or transport error. ``detail`` is diagnostic only."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail or "Unexpected error")
        self.detail = detail
        self.status_code = status_code


class InvalidResponse(CoachServiceError):
    user_message = "The wellness coach could not understand the response."


# Wire models for the responses API
Role = Literal["system", "user", "assistant"]


class ContentSegment(BaseModel):
    type: Literal["input_text", "output_text"] = "input_text"
    text: str


class InputMessage(BaseModel):
    role: Role
    content: list[ContentSegment]

    @classmethod
    def of(cls, role: Role, text: str) -> "InputMessage":
        segment_type: Literal["input_text", "output_text"] = (
            "output_text" if role == "assistant" else "input_text"
        )
        return cls(role=role, content=[ContentSegment(type=segment_type, text=text)])


class ResponsesRequest(BaseModel):
    model: str
    input: list[InputMessage]


class OutputSegment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    text: str | None = None


class OutputItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    content: list[OutputSegment] | None = None


class ResponsesResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    output_text: str | list[str | None] | None = None
    output: list[OutputItem] | None = None

    def consolidated_text(self) -> str:
        """Preferred text, or empty when the response carries none."""
        if isinstance(self.output_text, str):
            consolidated = self.output_text.strip()
        elif self.output_text:
            consolidated = "\n".join(t for t in self.output_text if t is not None).strip()
        else:
            consolidated = ""
        if consolidated:
            return consolidated

        fragments = [
            segment.text
            for item in self.output or []
            for segment in item.content or []
            if segment.text
        ]
        return "\n".join(fragments).strip()


class CoachClient:
    """
    Orchestrates one coaching exchange.

    Design principles:
    - Stateless across calls: history is passed in, nothing is cached
    - Only GuardrailViolation is raised; every other failure falls back locally
    - Credential layers are resolved lazily on every call
    """

    def __init__(
        self,
        config: CoachConfig | None = None,
        *,
        api_key: str | None = None,
        credential_resolvers: Sequence[CredentialResolver] | None = None,
        http_client: httpx.AsyncClient | None = None,
        guard: ConversationGuard | None = None,
    ) -> None:
        self.config = config or CoachConfig()
        self.credential_resolvers: list[CredentialResolver] = list(
            credential_resolvers
            if credential_resolvers is not None
            else default_credential_resolvers(api_key, self.config.api_key_env_var)
        )
        self.http_client = http_client
        self.guard = guard or ConversationGuard()
        self.logger = logger.bind(component="coach_client")

    async def respond(
        self,
        user_message: str,
        history: Sequence[ChatMessage],
        snapshot: WellnessSnapshot,
        *,
        privacy: PrivacySettings | None = None,
    ) -> str:
        """
        Answer ``user_message`` in the context of ``history`` and ``snapshot``.

        Raises GuardrailViolation when the message mentions sensitive data.
        """
        if not self.guard.allows(user_message):
            self.logger.warning("guardrail_violation", message_length=len(user_message))
            raise GuardrailViolation()

        recent_history = list(history)[-self.config.history_limit :]
        scrubbed_history = [
            message.model_copy(update={"text": self.guard.scrub(message.text)})
            for message in recent_history
        ]
        scrubbed_input = self.guard.scrub(user_message)

        if privacy is not None and not privacy.allows_wellness_ai:
            self.logger.info("wellness_ai_not_permitted")
            return self.fallback_response(snapshot)

        api_key = resolve_credential(self.credential_resolvers)
        if api_key is None:
            self.logger.info("coach_credential_missing")
            return self.fallback_response(snapshot)

        payload = self.build_payload(scrubbed_input, scrubbed_history, snapshot)
        result = await self._send(payload, api_key)
        return result.unwrap_or_else(lambda _: self.fallback_response(snapshot))

    def build_payload(
        self,
        scrubbed_input: str,
        scrubbed_history: Sequence[ChatMessage],
        snapshot: WellnessSnapshot,
    ) -> ResponsesRequest:
        """Persona, context, history in order, then the new user message."""
        entries = [
            InputMessage.of("system", COACH_PERSONA),
            InputMessage.of("system", f"Context summary:\n{snapshot.sanitized_context()}"),
        ]
        for message in scrubbed_history:
            role: Role = "user" if message.sender == MessageSender.USER else "assistant"
            entries.append(InputMessage.of(role, message.text))
        entries.append(InputMessage.of("user", scrubbed_input))
        return ResponsesRequest(model=self.config.model_name, input=entries)

    async def _send(
        self, payload: ResponsesRequest, api_key: str
    ) -> Result[str, CoachServiceError]:
        """POST the payload once. Failures come back as Result.err, never raised."""
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body = payload.model_dump(mode="json")

        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    self.config.endpoint_url, json=body, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.post(
                        self.config.endpoint_url, json=body, headers=headers
                    )
        except httpx.TimeoutException as e:
            self.logger.warning(
                "coach_request_timeout", timeout_seconds=self.config.timeout_seconds
            )
            return Result.err(NetworkFailure(f"Request timed out: {e}"))
        except httpx.HTTPError as e:
            self.logger.warning("coach_request_failed", error=str(e))
            return Result.err(NetworkFailure(str(e)))
        except Exception as e:
            self.logger.exception("unexpected_coach_request_error", error=str(e))
            return Result.err(NetworkFailure(str(e)))

        return self._parse(response)

    def _parse(self, response: httpx.Response) -> Result[str, CoachServiceError]:
        if response.status_code != 200:
            detail = response.text or "Unexpected error"
            self.logger.warning(
                "coach_request_rejected",
                status_code=response.status_code,
                detail=detail[:MAX_DIAGNOSTIC_CHARS],
            )
            return Result.err(NetworkFailure(detail, status_code=response.status_code))

        try:
            parsed = ResponsesResult.model_validate_json(response.content)
        except ValidationError as e:
            self.logger.warning("coach_response_invalid", errors=e.error_count())
            return Result.err(InvalidResponse())

        text = parsed.consolidated_text()
        if not text:
            self.logger.warning("coach_response_empty")
            return Result.err(InvalidResponse())

        self.logger.info("coach_response_received", response_chars=len(text))
        return Result.ok(text)

    @staticmethod
    def fallback_response(snapshot: WellnessSnapshot) -> str:
        """Deterministic offline summary. Performs no I/O and never raises."""
        lines = [
            OFFLINE_NOTICE,
            f"• Daily steps average: {snapshot.average_steps}. "
            "Keep aiming for consistent movement across the week.",
            f"• Active energy burn: {round_half_up(snapshot.average_active_energy)} kcal "
            "on average.",
            f"• Exercise minutes: {round_half_up(snapshot.average_exercise_minutes)} per day.",
        ]

        if snapshot.average_resting_heart_rate is not None:
            low, high = WellnessBenchmarks.RESTING_HEART_RATE_RANGE
            lines.append(
                "• Resting heart rate averages "
                f"{round_half_up(snapshot.average_resting_heart_rate)} bpm compared to "
                f"the typical {low:.0f}–{high:.0f} bpm range."
            )
        if snapshot.average_sleep_hours is not None:
            low, high = WellnessBenchmarks.RECOMMENDED_SLEEP_HOURS
            lines.append(
                f"• Sleep averages {snapshot.average_sleep_hours:.1f} h versus "
                f"the {low:.1f}–{high:.1f} h recommendation."
            )
        if snapshot.average_vo2_max is not None:
            low, high = WellnessBenchmarks.VO2_HEALTHY_RANGE
            lines.append(
                f"• VO₂ max trends around {snapshot.average_vo2_max:.1f} ml/kg·min. "
                f"Healthy range reference: {low:.0f}–{high:.0f}."
            )

        lines.append(CLOSING_ADVICE)
        return "\n".join(lines)
