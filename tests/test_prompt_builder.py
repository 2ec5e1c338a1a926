"""Tests for prompt assembly."""

import pytest

from deposim.context import prompt_blocks as blocks
from deposim.context.prompt_builder import (
    build_case_summary_prompt,
    build_coaching_prompt,
    build_examination_prompt,
    build_witness_summary_prompt,
    classify_document_question,
    inject_document_context,
    witness_public_info,
)
from deposim.context.role_presets import PROMPT_PRESETS, get_preset_instruction, get_preset_options
from deposim.core.schemas_session import ChatMessage, CustomRoleInstructions, RolePresetSelection
from deposim.core.schemas_truthfulness import Behavior, BehaviorDecision
from tests.fixtures_deposition import AFFAIR_SECRET, make_document

RULING_TEXT = "you MUST rule on it as THE JUDGE"
NO_JUDGE_TEXT = "You must NOT act as a judge"


def _decision(behavior: Behavior) -> BehaviorDecision:
    return BehaviorDecision(behavior=behavior)


@pytest.mark.parametrize("judge_present", [True, False])
@pytest.mark.parametrize(
    "behavior,expected_block",
    [
        (Behavior.PERJURY, blocks.BLOCK_TRUTHFULNESS_PERJURY),
        (Behavior.EVASIVE, blocks.BLOCK_TRUTHFULNESS_NON_LYING),
        (Behavior.TRUTHFUL, blocks.BLOCK_TRUTHFULNESS_NON_LYING),
        (None, blocks.BLOCK_TRUTHFULNESS_NON_LYING),
    ],
)
def test_examination_prompt_sections(witness, judge_present, behavior, expected_block):
    decision = _decision(behavior) if behavior is not None else None

    message = build_examination_prompt(witness, judge_present, None, decision)
    content = message.content

    assert message.role == "system"
    assert content.startswith(blocks.BLOCK_EXAMINATION_INTRO)
    assert expected_block in content
    assert blocks.BLOCK_PRIVILEGE_RULES in content
    if judge_present:
        assert RULING_TEXT in content
        assert NO_JUDGE_TEXT not in content
    else:
        assert NO_JUDGE_TEXT in content
        assert RULING_TEXT not in content
    # The in-character prompt carries the full dossier, secret included
    assert AFFAIR_SECRET in content


def test_examination_prompt_section_order(witness):
    content = build_examination_prompt(witness, True, None, _decision(Behavior.PERJURY)).content

    positions = [
        content.index("**Legal Framework:**"),
        content.index("**Witness Dossier:**"),
        content.index("**OPPOSING COUNSEL:**"),
        content.index("**Privilege Objections (CRITICAL):**"),
        content.index("**THE JUDGE:**"),
        content.index("**Execution:**"),
        content.index("**Witness Truthfulness (This Answer):**"),
    ]
    assert positions == sorted(positions)


def test_examination_prompt_is_deterministic(witness):
    decision = _decision(Behavior.EVASIVE)

    first = build_examination_prompt(witness, True, None, decision)
    second = build_examination_prompt(witness, True, None, decision)

    assert first.content == second.content


def test_examination_prompt_without_witness_is_error_message():
    message = build_examination_prompt(None, True, None, None)

    assert message.content == "Error: No witness data."


def test_custom_role_text_overrides_presets(witness):
    roles = CustomRoleInstructions(
        judge_custom="Judge Moody rules from the hip.",
        counsel_custom="Counsel never objects.",
        rules_custom="Texas discovery rules apply.",
    )

    content = build_examination_prompt(witness, True, roles, None).content

    assert "Judge Moody rules from the hip." in content
    assert "Counsel never objects." in content
    assert "Texas discovery rules apply." in content
    assert get_preset_instruction("judge", "default") not in content


def test_presets_fill_in_when_custom_text_is_blank(witness):
    roles = CustomRoleInstructions(judge_custom="   ")
    presets = RolePresetSelection(judge="hostile", opposing_counsel="aggressive", rules="arbitration")

    content = build_examination_prompt(witness, True, roles, None, presets=presets).content

    assert PROMPT_PRESETS["judge"]["hostile"]["instruction"] in content
    assert PROMPT_PRESETS["opposing_counsel"]["aggressive"]["instruction"] in content
    assert PROMPT_PRESETS["rules"]["arbitration"]["instruction"] in content


def test_unknown_preset_falls_back_to_default(witness):
    presets = RolePresetSelection(rules="martian-law")

    content = build_examination_prompt(witness, False, None, None, presets=presets).content

    assert PROMPT_PRESETS["rules"]["default"]["instruction"] in content


def test_judge_preset_is_not_used_when_judge_absent(witness):
    presets = RolePresetSelection(judge="hostile")

    content = build_examination_prompt(witness, False, None, None, presets=presets).content

    assert PROMPT_PRESETS["judge"]["hostile"]["instruction"] not in content


def test_document_blocks_appear_only_with_documents(witness):
    docs = [make_document("A", document_type="email"), make_document("B", document_type="receipt")]

    without = build_examination_prompt(witness, True, None, None).content
    with_docs = build_examination_prompt(witness, True, None, None, documents=docs).content
    no_judge = build_examination_prompt(witness, False, None, None, documents=docs).content

    assert "DOCUMENT OBJECTION HANDLING" not in without
    assert "Documents present: Exhibit A (email), Exhibit B (receipt)" in with_docs
    assert "DOCUMENT HANDLING PROCEDURES" in with_docs
    assert "DOCUMENT RESPONSE GUIDELINES" in with_docs
    assert "DOCUMENT HANDLING PROCEDURES" not in no_judge
    assert "DOCUMENT OBJECTION HANDLING" in no_judge


def test_witness_summary_excludes_concealed_information(witness):
    for level in (1, 2, 3):
        content = build_witness_summary_prompt(witness, level).content

        assert AFFAIR_SECRET not in content
        assert "Stayed late with the supervisor" not in content
        assert "Badge logs" not in content
        assert "perjuryRisk" not in content
        assert "Sarah Collins" in content
        assert "Left the office at 6pm" in content


def test_witness_summary_detail_levels(witness):
    assert blocks.WITNESS_SUMMARY_DETAIL[1] in build_witness_summary_prompt(witness, 1).content
    assert blocks.WITNESS_SUMMARY_DETAIL[3] in build_witness_summary_prompt(witness, 3).content
    # Out-of-range levels are clamped
    assert blocks.WITNESS_SUMMARY_DETAIL[3] in build_witness_summary_prompt(witness, 9).content


def test_witness_public_info_fields(witness):
    info = witness_public_info(witness)

    assert info["Witness Name"] == "Sarah Collins"
    assert info["Basic Details"] == {
        "Age": 42,
        "Occupation": "Regional Sales Manager",
        "Residence": "Columbus, Ohio",
    }
    assert info["Professional Reputation"] == "Respected, known for long hours"


def test_case_summary_excludes_concealed_information(witness):
    message = build_case_summary_prompt(witness, 2)

    assert message.role == "user"
    assert AFFAIR_SECRET not in message.content
    assert "Stayed late with the supervisor" not in message.content
    assert blocks.CASE_SUMMARY_DETAIL[2] in message.content
    assert "CASE-001" in message.content


def test_coaching_prompt_replays_history_out_of_character(witness):
    history = [
        ChatMessage(role="system", content="SYSTEM PROMPT"),
        ChatMessage(role="user", content="Where were you?"),
        ChatMessage(role="assistant", content="At home."),
        ChatMessage(role="assistant", content="Try a timeline question.", is_ooc=True),
    ]

    message = build_coaching_prompt(witness, history)

    assert message.is_ooc is True
    assert "BREAK CHARACTER" in message.content
    assert "Examiner: Where were you?" in message.content
    assert "Witness: At home." in message.content
    assert "Coach: Try a timeline question." in message.content
    assert "SYSTEM PROMPT" not in message.content


@pytest.mark.parametrize(
    "question,phase",
    [
        ("Are you familiar with this email?", "identification"),
        ("Did you write this memo?", "authentication"),
        ("According to the report, who was there?", "content"),
        ("That's not what you told us earlier.", "impeachment"),
        ("Turn to Exhibit A.", "general"),
    ],
)
def test_classify_document_question(question, phase):
    assert classify_document_question(question) == phase


def test_inject_document_context_appends_exhibits_and_hint():
    docs = [
        make_document("B", text="Lunch for two, $84.", document_type="receipt", file_name="r.txt"),
        make_document("C", text="Quarterly sales review."),
    ]

    content = inject_document_context("BASE", docs, "Do you recognize Exhibit B?")

    assert content.startswith("BASE\n\n")
    assert "DEPOSITION EXHIBIT B (receipt):\nFile: r.txt\nLunch for two, $84.\n[END OF EXHIBIT B]" in content
    assert "[END OF EXHIBIT C]" in content
    assert "referencing Exhibit B (receipt): r.txt" in content
    assert blocks.DOCUMENT_PHASE_HINTS["identification"] in content


def test_inject_document_context_without_documents_is_unchanged():
    assert inject_document_context("BASE", [], "anything") == "BASE"


def test_preset_options_and_unknown_role():
    options = get_preset_options("opposing_counsel")

    assert [o["value"] for o in options] == ["default", "aggressive", "inattentive", "inexperienced"]
    assert get_preset_options("bailiff") == []
    assert get_preset_instruction("bailiff", "default") == ""
