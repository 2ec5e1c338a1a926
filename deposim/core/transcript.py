"""Transcript and role-instruction export/import."""

import json
import re
from collections.abc import Sequence
from datetime import date

from deposim.core.errors import ErrorCode, FileError
from deposim.core.providers import PROVIDERS
from deposim.core.schemas_session import ChatMessage, CustomRoleInstructions

ROLE_INSTRUCTIONS_FILE_NAME = "deposition-prompts.json"


def speaker_label(message: ChatMessage) -> str:
    if message.role == "user":
        return "Examiner"
    if message.is_ooc:
        return "Coach"
    return "Witness"


def render_transcript(
    messages: Sequence[ChatMessage],
    witness_name: str,
    provider_id: str,
    model: str,
    on_date: date | None = None,
) -> str:
    """Markdown transcript of the conversation (system prompt excluded)."""
    on_date = on_date or date.today()
    provider = PROVIDERS.get(provider_id)
    provider_label = provider.name if provider else provider_id

    content = (
        "# Deposition Transcript\n\n"
        f"- **Witness:** {witness_name}\n"
        f"- **Date:** {on_date.isoformat()}\n"
        f"- **LLM Provider:** {provider_label}\n"
        f"- **LLM Model:** {model}\n"
        "---\n\n"
    )
    for message in messages:
        if message.role == "system":
            continue
        content += f"**{speaker_label(message)}:** {message.content}\n\n"
    return content


def transcript_filename(witness_name: str, on_date: date | None = None) -> str:
    on_date = on_date or date.today()
    safe_name = re.sub(r"\s+", "_", witness_name)
    return f"Deposition-of-{safe_name}-{on_date.isoformat()}.md"


def export_role_instructions(roles: CustomRoleInstructions) -> str:
    """JSON with the judgeCustom/counselCustom/rulesCustom keys."""
    return json.dumps(roles.model_dump(by_alias=True), indent=2)


def import_role_instructions(
    content: str | bytes,
    current: CustomRoleInstructions | None = None,
    file_name: str = ROLE_INSTRUCTIONS_FILE_NAME,
) -> CustomRoleInstructions:
    """
    Parse exported role instructions.

    Empty or missing entries keep the corresponding ``current`` value.

    Raises:
        FileError: If the content is not a JSON object with the expected keys
    """
    try:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        imported = CustomRoleInstructions.model_validate(
            {key: value or "" for key, value in data.items()}
        )
    except ValueError as e:
        raise FileError(
            f"Role instruction file is invalid: {e}",
            file_name,
            "import",
            code=ErrorCode.FILE_PARSE_ERROR,
        ) from e

    current = current or CustomRoleInstructions()
    return CustomRoleInstructions(
        judge_custom=imported.judge_custom or current.judge_custom,
        counsel_custom=imported.counsel_custom or current.counsel_custom,
        rules_custom=imported.rules_custom or current.rules_custom,
    )
