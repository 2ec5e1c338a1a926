"""Pydantic schemas for conversation state and API payloads."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from deposim.core.schemas_truthfulness import BehaviorDecision, SessionStatistics

MessageRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """One entry in the deposition transcript."""

    role: MessageRole
    content: str
    is_ooc: bool = Field(default=False, description="Out-of-character (coaching) message")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_api(self) -> dict[str, str]:
        """Role/content pair for a provider call."""
        return {"role": self.role, "content": self.content}


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens


class CustomRoleInstructions(BaseModel):
    """Free-text overrides for the supporting roles.

    Serialized with the camelCase keys used by the exported JSON file.
    """

    model_config = ConfigDict(populate_by_name=True)

    judge_custom: str = Field(default="", alias="judgeCustom")
    counsel_custom: str = Field(default="", alias="counselCustom")
    rules_custom: str = Field(default="", alias="rulesCustom")


class RolePresetSelection(BaseModel):
    """Preset keys used when no custom override is given."""

    judge: str = "default"
    opposing_counsel: str = "default"
    rules: str = "default"


class ProviderSelection(BaseModel):
    provider_id: str = "openai"
    model: str | None = None
    api_key: str | None = None


# =========================
# API payloads
# =========================


class CreateSessionRequest(BaseModel):
    """Load a case file (single witness or ``{"witnesses": [...]}``)."""

    case_data: dict[str, Any]
    judge_present: bool = False
    provider: ProviderSelection | None = None
    custom_roles: CustomRoleInstructions = Field(default_factory=CustomRoleInstructions)
    role_presets: RolePresetSelection = Field(default_factory=RolePresetSelection)
    rng_seed: int | None = None


class SessionSettingsUpdate(BaseModel):
    judge_present: bool | None = None
    ooc_mode: bool | None = None
    active_witness_index: int | None = None
    provider: ProviderSelection | None = None
    custom_roles: CustomRoleInstructions | None = None
    role_presets: RolePresetSelection | None = None


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1)


class SendMessageResponse(BaseModel):
    user_message: ChatMessage
    assistant_message: ChatMessage
    usage: TokenUsage
    referenced_exhibits: list[str] = Field(default_factory=list)
    total_tokens: int
    total_cost: float


class SummaryRequest(BaseModel):
    detail_level: int = Field(default=1, ge=1, le=3)


class SummaryResponse(BaseModel):
    message: ChatMessage
    usage: TokenUsage


class SessionView(BaseModel):
    """Client-facing snapshot; the system prompt is never included."""

    session_id: str
    witness_name: str | None
    witness_count: int
    active_witness_index: int
    judge_present: bool
    ooc_mode: bool
    provider_id: str
    model: str | None
    has_api_key: bool = False
    messages: list[ChatMessage]
    total_tokens: int
    total_cost: float
    is_busy: bool


class BehaviorDebugView(BaseModel):
    """Engine internals for debugging and tests; not shown to examiners."""

    statistics: SessionStatistics
    last_decision: BehaviorDecision | None = None
