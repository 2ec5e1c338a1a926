"""Prompt assembly for examination, coaching and summary calls.

All functions are pure: the same witness, settings and behaviour decision
always produce the same text. Builders return a ChatMessage rather than
raising, because their output goes straight into a model call.

Summary builders only read publicly known fields. Motivations, the concealed
fact and vulnerabilities never reach a summary prompt.
"""

import json
from collections.abc import Sequence
from typing import Any

from deposim.context import prompt_blocks as blocks
from deposim.context.role_presets import get_preset_instruction
from deposim.core.document_registry import format_exhibit
from deposim.core.schemas_documents import ReferenceDocument
from deposim.core.schemas_session import ChatMessage, CustomRoleInstructions, RolePresetSelection
from deposim.core.schemas_truthfulness import Behavior, BehaviorDecision
from deposim.core.schemas_witness import WitnessProfile


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _role_instruction(custom: str, role: str, preset_key: str) -> str:
    """Custom text wins; otherwise the preset, falling back to the role default."""
    if custom and custom.strip():
        return custom.strip()
    return get_preset_instruction(role, preset_key) or get_preset_instruction(role, "default")


def _exhibit_list(documents: Sequence[ReferenceDocument]) -> str:
    return ", ".join(
        f"Exhibit {doc.exhibit_letter} ({doc.metadata.document_type})" for doc in documents
    )


# =========================
# Examination
# =========================


def build_examination_prompt(
    witness: WitnessProfile | None,
    judge_present: bool,
    custom_roles: CustomRoleInstructions | None,
    behavior_decision: BehaviorDecision | None,
    documents: Sequence[ReferenceDocument] | None = None,
    presets: RolePresetSelection | None = None,
) -> ChatMessage:
    """
    Build the system instruction for an in-character examination turn.

    Sections, in order: legal framework, witness role with the full dossier,
    opposing counsel with privilege rules, judge (or explicit no-judge text),
    execution rules, truthfulness directive. Document-handling guidance is
    appended when exhibits are registered.

    Args:
        witness: Active witness; None yields an in-band error message
        judge_present: Whether a judge rules on objections
        custom_roles: Free-text overrides for judge, counsel and rules
        behavior_decision: Truthfulness engine decision for this question
            (None before any question has been evaluated)
        documents: Registered exhibits
        presets: Preset keys used where no custom text is given

    Returns:
        System ChatMessage
    """
    if witness is None:
        return ChatMessage(role="system", content=blocks.NO_WITNESS_ERROR)

    custom_roles = custom_roles or CustomRoleInstructions()
    presets = presets or RolePresetSelection()
    documents = list(documents or [])

    rules_instruction = _role_instruction(custom_roles.rules_custom, "rules", presets.rules)
    counsel_instruction = _role_instruction(
        custom_roles.counsel_custom, "opposing_counsel", presets.opposing_counsel
    )

    sections = [
        blocks.BLOCK_EXAMINATION_INTRO,
        blocks.BLOCK_LEGAL_FRAMEWORK.format(rules_instruction=rules_instruction),
        blocks.BLOCK_WITNESS_ROLE.format(dossier=_to_json(witness.to_dossier())),
        blocks.BLOCK_OPPOSING_COUNSEL.format(counsel_instruction=counsel_instruction),
        blocks.BLOCK_PRIVILEGE_RULES,
    ]

    if judge_present:
        judge_instruction = _role_instruction(custom_roles.judge_custom, "judge", presets.judge)
        sections.append(blocks.BLOCK_JUDGE_PRESENT.format(judge_instruction=judge_instruction))
    else:
        sections.append(blocks.BLOCK_JUDGE_ABSENT)

    sections.append(blocks.BLOCK_EXECUTION)

    if behavior_decision is not None and behavior_decision.behavior == Behavior.PERJURY:
        sections.append(blocks.BLOCK_TRUTHFULNESS_PERJURY)
    else:
        sections.append(blocks.BLOCK_TRUTHFULNESS_NON_LYING)

    if documents:
        exhibit_list = _exhibit_list(documents)
        sections.append(blocks.BLOCK_DOCUMENT_COUNSEL.format(exhibit_list=exhibit_list))
        if judge_present:
            sections.append(blocks.BLOCK_DOCUMENT_JUDGE.format(exhibit_list=exhibit_list))
        sections.append(blocks.BLOCK_DOCUMENT_WITNESS)

    return ChatMessage(role="system", content="\n\n".join(sections))


# =========================
# Coaching
# =========================


def _speaker(message: ChatMessage) -> str:
    if message.role == "user":
        return "Examiner"
    return "Coach" if message.is_ooc else "Witness"


def build_coaching_prompt(
    witness: WitnessProfile | None, messages: Sequence[ChatMessage]
) -> ChatMessage:
    """Out-of-character coach instruction replaying the transcript so far."""
    history = "\n".join(
        f"{_speaker(m)}: {m.content}" for m in messages if m.role != "system"
    )
    dossier = witness.to_dossier() if witness is not None else None
    return ChatMessage(
        role="system",
        content=blocks.BLOCK_COACH.format(history=history, dossier=_to_json(dossier)),
        is_ooc=True,
    )


# =========================
# Summaries
# =========================


def _clamp_detail(detail_level: int) -> int:
    return max(1, min(int(detail_level), 3))


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None and v != {}}


def witness_public_info(witness: WitnessProfile) -> dict[str, Any]:
    """Publicly known facts about a witness; nothing from motivations or narrative."""
    background = witness.witness_background
    personal = background.get("personalDetails") or {}
    professional = background.get("professionalLife") or {}

    basic_details = _drop_empty(
        {
            "Age": personal.get("age"),
            "Occupation": personal.get("occupation"),
            "Residence": personal.get("residence"),
        }
    )
    return _drop_empty(
        {
            "Witness Name": witness.name or personal.get("fullName"),
            "Basic Details": basic_details,
            "Professional Reputation": professional.get("reputation"),
            "Official Statement Summary": (
                witness.full_witness_information.official_statement_summary
            ),
        }
    )


def build_witness_summary_prompt(witness: WitnessProfile, detail_level: int = 1) -> ChatMessage:
    """User prompt asking for a briefing on the witness from public facts only."""
    detail = blocks.WITNESS_SUMMARY_DETAIL[_clamp_detail(detail_level)]
    return ChatMessage(
        role="user",
        content=blocks.BLOCK_WITNESS_SUMMARY.format(
            detail_instruction=detail, public_info=_to_json(witness_public_info(witness))
        ),
    )


def case_public_info(witness: WitnessProfile) -> dict[str, Any]:
    info = witness.full_witness_information
    statement = {"officialStatementSummary": info.official_statement_summary}
    if info.official_reason_for_termination:
        statement["officialReasonForTermination"] = info.official_reason_for_termination

    return {
        "witnessProfile": witness.witness_profile.model_dump(by_alias=True),
        "witnessBackground": witness.witness_background,
        "fullWitnessInformation": statement,
    }


def build_case_summary_prompt(witness: WitnessProfile, detail_level: int = 1) -> ChatMessage:
    """User prompt asking for an inferred case summary from public facts only."""
    detail = blocks.CASE_SUMMARY_DETAIL[_clamp_detail(detail_level)]
    return ChatMessage(
        role="user",
        content=blocks.BLOCK_CASE_SUMMARY.format(
            detail_instruction=detail, public_info=_to_json(case_public_info(witness))
        ),
    )


# =========================
# Document context
# =========================


def classify_document_question(user_input: str) -> str:
    """identification / authentication / content / impeachment / general."""
    lowered = user_input.lower()
    for phase, phrases in blocks.DOCUMENT_QUESTION_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return phase
    return "general"


def inject_document_context(
    base_prompt: str,
    referenced_documents: Sequence[ReferenceDocument],
    user_input: str,
) -> str:
    """
    Append referenced exhibits and a question-phase hint to a system prompt.

    Each document contributes its exhibit-formatted text and a foundation
    note; the hint is chosen from the current question for the first
    (highest ranked) document.
    """
    if not referenced_documents:
        return base_prompt

    parts = [base_prompt]
    for doc in referenced_documents:
        parts.append(
            blocks.BLOCK_DOCUMENT_FOUNDATION.format(
                exhibit_text=format_exhibit(doc), exhibit_letter=doc.exhibit_letter
            )
        )

    first = referenced_documents[0]
    phase = classify_document_question(user_input)
    parts.append(
        blocks.BLOCK_DOCUMENT_CONTEXT_HEADER.format(
            exhibit_letter=first.exhibit_letter,
            document_type=first.metadata.document_type,
            file_name=first.file_name,
        )
        + "\n\n"
        + blocks.DOCUMENT_PHASE_HINTS[phase]
    )
    return "\n\n".join(parts)
