"""Generate pre-deposition briefings: a witness summary or a case summary.

Both prompts are built from publicly known witness facts only. The reply is
always out-of-character and is appended to the transcript so it shows up in
exports alongside the examination.
"""

from __future__ import annotations

from typing import Literal

from deposim.context.prompt_builder import build_case_summary_prompt, build_witness_summary_prompt
from deposim.core.deposition_session import DepositionSession
from deposim.core.errors import ErrorCode, ValidationError
from deposim.core.llm import ModelGateway
from deposim.core.logging import get_logger
from deposim.core.schemas_session import ChatMessage, SummaryResponse

logger = get_logger(__name__)

SummaryKind = Literal["witness", "case"]


async def generate_summary(
    session: DepositionSession,
    gateway: ModelGateway,
    kind: SummaryKind = "witness",
    detail_level: int = 1,
) -> SummaryResponse:
    """
    Ask the model for a witness or case briefing.

    Args:
        session: Session whose active witness is summarized
        gateway: Model gateway used for the provider call
        kind: "witness" for a briefing on the person, "case" for the inferred case
        detail_level: 1 (one paragraph) to 3 (detailed)

    Returns:
        SummaryResponse with the OOC assistant message and usage

    Raises:
        SessionBusyError: If a turn is in flight
        ValidationError: If no witness is loaded
    """
    witness = session.witness
    if witness is None:
        raise ValidationError(
            "Witness data is required for a summary",
            field="witness",
            code=ErrorCode.WITNESS_DATA_INVALID,
        )

    if kind == "case":
        prompt = build_case_summary_prompt(witness, detail_level)
    else:
        prompt = build_witness_summary_prompt(witness, detail_level)

    session.begin_turn()
    try:
        response = await gateway.invoke(
            [prompt],
            session.llm_config(),
            workflow=f"{kind}_summary",
            session_id=session.session_id,
        )
        message = ChatMessage(role="assistant", content=response.content, is_ooc=True)
        session.append_message(message)
        session.add_usage(response.usage)
    finally:
        session.end_turn()

    logger.info(
        f"Generated {kind} summary for {witness.display_name} (detail {detail_level}, "
        f"{response.usage.total} tokens)"
    )
    return SummaryResponse(message=message, usage=response.usage)
