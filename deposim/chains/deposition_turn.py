"""Run one examiner turn through the deposition pipeline.

Order per question: resolve document references, let the truthfulness engine
pick a behaviour, assemble the system prompt (with referenced exhibits
injected), call the model gateway, then record the exchange. In coach mode
the engine and resolver are skipped and the coaching prompt is used instead.

The session only receives the user and assistant messages after the gateway
call succeeds, so a failed or cancelled call leaves the transcript unchanged.
"""

from __future__ import annotations

import logging

from deposim.context.prompt_builder import (
    build_coaching_prompt,
    build_examination_prompt,
    inject_document_context,
)
from deposim.core.deposition_session import DepositionSession
from deposim.core.document_resolver import resolve_document_references
from deposim.core.errors import ErrorCode, ValidationError
from deposim.core.llm import ModelGateway
from deposim.core.logging import get_logger, log_with_context
from deposim.core.schemas_session import ChatMessage, SendMessageResponse

logger = get_logger(__name__)


def _examination_system_message(
    session: DepositionSession, content: str
) -> tuple[ChatMessage, list[str]]:
    """System prompt for an in-character answer plus the exhibit letters it cites."""
    registry = session.registry
    matches = resolve_document_references(content, registry.list_documents())
    referenced = [m.document for m in matches]
    for doc in referenced:
        registry.mark_active(doc.id)

    decision = session.engine.evaluate_question(
        content,
        recent_history=session.history,
        document_contexts=[doc.text_content for doc in referenced],
    )

    system = build_examination_prompt(
        session.witness,
        session.judge_present,
        session.custom_roles,
        decision,
        documents=registry.list_documents(),
        presets=session.role_presets,
    )
    if referenced:
        system = ChatMessage(
            role="system",
            content=inject_document_context(system.content, referenced, content),
        )
    return system, [doc.exhibit_letter for doc in referenced]


async def run_deposition_turn(
    session: DepositionSession,
    content: str,
    gateway: ModelGateway,
) -> SendMessageResponse:
    """
    Send one examiner message and return the witness (or coach) reply.

    Args:
        session: Session to advance
        content: Examiner's question, or a coaching request in OOC mode
        gateway: Model gateway used for the provider call

    Returns:
        SendMessageResponse with both messages, usage and running totals

    Raises:
        SessionBusyError: If another turn is in flight for the session
        ValidationError: If the message is blank or no witness is loaded
        ConfigurationError / APIError: Propagated from the gateway
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Message is empty", field="content")
    if session.witness is None:
        raise ValidationError(
            "No witness is loaded for this session",
            field="witness",
            code=ErrorCode.WITNESS_DATA_INVALID,
        )

    session.begin_turn()
    try:
        ooc = session.ooc_mode
        user_message = ChatMessage(role="user", content=text, is_ooc=ooc)

        if ooc:
            system = build_coaching_prompt(session.witness, [*session.messages, user_message])
            exhibits: list[str] = []
        else:
            system, exhibits = _examination_system_message(session, text)

        call_messages = [system, *session.history, user_message]
        response = await gateway.invoke(
            call_messages,
            session.llm_config(),
            workflow="coach" if ooc else "deposition",
            session_id=session.session_id,
        )

        assistant_message = ChatMessage(role="assistant", content=response.content, is_ooc=ooc)
        session.record_exchange(user_message, assistant_message)
        session.add_usage(response.usage)

        log_with_context(
            logger,
            logging.INFO,
            f"Turn complete ({'coach' if ooc else 'examination'}), exhibits={exhibits}",
            session_id=session.session_id,
            tokens=response.usage.total,
        )
        return SendMessageResponse(
            user_message=user_message,
            assistant_message=assistant_message,
            usage=response.usage,
            referenced_exhibits=exhibits,
            total_tokens=session.total_tokens,
            total_cost=round(session.total_cost, 6),
        )
    finally:
        session.registry.clear_active()
        session.end_turn()
