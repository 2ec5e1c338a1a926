"""Deposition session state.

One ``DepositionSession`` per active deposition: the witness pool, role and
provider settings, the transcript, cost counters, and the session's own
TruthfulnessEngine and DocumentRegistry. Nothing is shared between sessions.

Changing the witness, model, judge presence or role instructions resets the
conversation (messages and cost) but keeps the witness pool and exhibits.
"""

import random
import uuid
from datetime import UTC, datetime

from deposim.context.prompt_builder import build_examination_prompt
from deposim.core.config import get_settings
from deposim.core.document_manifest import ManifestLoader
from deposim.core.document_registry import DocumentRegistry
from deposim.core.errors import ConfigurationError, ErrorCode, SessionBusyError, ValidationError
from deposim.core.key_obfuscation import deobfuscate_api_key, obfuscate_api_key
from deposim.core.llm import LLMConfig
from deposim.core.llm_usage import estimate_cost
from deposim.core.logging import get_logger
from deposim.core.providers import PROVIDERS, resolve_model
from deposim.core.schemas_session import (
    ChatMessage,
    CustomRoleInstructions,
    ProviderSelection,
    RolePresetSelection,
    SessionView,
    TokenUsage,
)
from deposim.core.schemas_witness import WitnessProfile
from deposim.core.truthfulness_engine import TruthfulnessEngine

logger = get_logger(__name__)


def default_provider_selection() -> ProviderSelection:
    """Provider and model from settings, used when a session is created without one."""
    settings = get_settings()
    return ProviderSelection(provider_id=settings.DEFAULT_PROVIDER, model=settings.DEFAULT_MODEL)


class DepositionSession:
    """
    Mutable state for one deposition.

    Args:
        witnesses: Witness pool from a case file (may be empty)
        judge_present: Whether a judge rules on objections
        provider: Provider, model and optional API key
        custom_roles: Free-text role overrides
        role_presets: Preset keys per role
        rng: Random source for the truthfulness engine
        registry: Exhibit registry (a fresh one by default)
    """

    def __init__(
        self,
        witnesses: list[WitnessProfile] | None = None,
        judge_present: bool = False,
        provider: ProviderSelection | None = None,
        custom_roles: CustomRoleInstructions | None = None,
        role_presets: RolePresetSelection | None = None,
        rng: random.Random | None = None,
        registry: DocumentRegistry | None = None,
        session_id: str | None = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now(UTC)
        self.witnesses: list[WitnessProfile] = list(witnesses or [])
        self.active_witness_index = 0
        self.judge_present = judge_present
        self.ooc_mode = False
        self.custom_roles = custom_roles or CustomRoleInstructions()
        self.role_presets = role_presets or RolePresetSelection()

        self.provider_id = "openai"
        self.model: str | None = None
        self._masked_api_key = ""
        self._apply_provider(provider or default_provider_selection())

        self.engine = TruthfulnessEngine(rng=rng)
        self.registry = registry or DocumentRegistry()

        self.messages: list[ChatMessage] = []
        self.total_tokens = 0
        self.total_cost = 0.0
        self.is_busy = False

        self.reset()

    # =========================
    # Witness
    # =========================

    @property
    def witness(self) -> WitnessProfile | None:
        if 0 <= self.active_witness_index < len(self.witnesses):
            return self.witnesses[self.active_witness_index]
        return None

    def load_witnesses(self, witnesses: list[WitnessProfile]) -> None:
        """Replace the witness pool; exhibits from the previous case are cleared."""
        self.witnesses = list(witnesses)
        self.active_witness_index = 0
        self.registry.clear_all()
        self.reset()

    def select_witness(self, index: int) -> None:
        if not 0 <= index < len(self.witnesses):
            raise ValidationError(
                f"Witness index {index} out of range (0-{len(self.witnesses) - 1})",
                field="active_witness_index",
                value=str(index),
            )
        if index != self.active_witness_index:
            self.active_witness_index = index
            self.reset()

    def load_case_documents(self, loader: ManifestLoader) -> int:
        """Register the active witness's pre-built exhibits; returns how many were added."""
        witness = self.witness
        if witness is None or not witness.case_reference:
            return 0

        documents = loader.get_documents_for_case(witness.case_reference)
        for doc in documents:
            self.registry.add_prebuilt(doc)
        return len(documents)

    # =========================
    # Settings
    # =========================

    def set_judge_present(self, judge_present: bool) -> None:
        if judge_present != self.judge_present:
            self.judge_present = judge_present
            self.reset()

    def set_ooc_mode(self, ooc_mode: bool) -> None:
        self.ooc_mode = ooc_mode

    def set_custom_roles(self, custom_roles: CustomRoleInstructions) -> None:
        self.custom_roles = custom_roles
        self.reset()

    def set_role_presets(self, role_presets: RolePresetSelection) -> None:
        self.role_presets = role_presets
        self.reset()

    def set_provider(self, provider: ProviderSelection) -> None:
        """Switch provider/model/key; a different model resets the conversation."""
        previous = (self.provider_id, self.model)
        self._apply_provider(provider)
        if (self.provider_id, self.model) != previous:
            self.reset()

    def _apply_provider(self, provider: ProviderSelection) -> None:
        if provider.provider_id not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {provider.provider_id}",
                setting="provider",
                code=ErrorCode.INVALID_PROVIDER,
            )
        model = resolve_model(provider.provider_id, provider.model)
        if PROVIDERS[provider.provider_id].get_model(model) is None:
            raise ConfigurationError(
                f"Model {model} is not offered by {provider.provider_id}",
                setting="model",
                code=ErrorCode.INVALID_MODEL,
            )

        if provider.provider_id != self.provider_id:
            # Keys are per provider
            self._masked_api_key = ""
        self.provider_id = provider.provider_id
        self.model = model
        if provider.api_key is not None:
            # Masked at rest; not a security boundary
            self._masked_api_key = obfuscate_api_key(provider.api_key.strip())

    @property
    def has_api_key(self) -> bool:
        return bool(self._masked_api_key)

    def llm_config(self) -> LLMConfig:
        return LLMConfig(
            provider_id=self.provider_id,
            model=self.model,
            api_key=deobfuscate_api_key(self._masked_api_key) or None,
        )

    # =========================
    # Conversation
    # =========================

    def reset(self) -> None:
        """Clear the conversation and re-arm the truthfulness engine for the active witness."""
        witness = self.witness
        self.engine.initialize_session(witness)

        self.messages = []
        if witness is not None:
            self.messages.append(
                build_examination_prompt(
                    witness,
                    self.judge_present,
                    self.custom_roles,
                    None,
                    documents=self.registry.list_documents(),
                    presets=self.role_presets,
                )
            )
        self.total_tokens = 0
        self.total_cost = 0.0
        logger.debug(f"Session {self.session_id} reset")

    @property
    def history(self) -> list[ChatMessage]:
        """Conversation without the system prompt."""
        return [m for m in self.messages if m.role != "system"]

    def begin_turn(self) -> None:
        """
        Claim the session for one turn.

        Raises:
            SessionBusyError: If a turn is already in flight
        """
        if self.is_busy:
            raise SessionBusyError(self.session_id)
        self.is_busy = True

    def end_turn(self) -> None:
        self.is_busy = False

    def record_exchange(self, user_message: ChatMessage, assistant_message: ChatMessage) -> None:
        self.messages.extend([user_message, assistant_message])

    def append_message(self, message: ChatMessage) -> None:
        """Add a standalone message (e.g. a briefing summary) to the transcript."""
        self.messages.append(message)

    def add_usage(self, usage: TokenUsage) -> float:
        """Add a call's tokens and cost to the running totals; returns the call cost."""
        cost = estimate_cost(self.model or "", usage.input_tokens, usage.output_tokens)
        self.total_tokens += usage.total
        self.total_cost += cost
        return cost

    def to_view(self) -> SessionView:
        witness = self.witness
        return SessionView(
            session_id=self.session_id,
            witness_name=witness.display_name if witness else None,
            witness_count=len(self.witnesses),
            active_witness_index=self.active_witness_index,
            judge_present=self.judge_present,
            ooc_mode=self.ooc_mode,
            provider_id=self.provider_id,
            model=self.model,
            has_api_key=self.has_api_key,
            messages=self.history,
            total_tokens=self.total_tokens,
            total_cost=round(self.total_cost, 6),
            is_busy=self.is_busy,
        )


class SessionStore:
    """In-process registry of active sessions, keyed by session id."""

    def __init__(self):
        self._sessions: dict[str, DepositionSession] = {}

    def add(self, session: DepositionSession) -> DepositionSession:
        self._sessions[session.session_id] = session
        logger.info(f"Session {session.session_id} created")
        return session

    def get(self, session_id: str) -> DepositionSession | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def list_ids(self) -> list[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
