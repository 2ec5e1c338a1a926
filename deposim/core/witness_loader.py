"""Case file loading.

A case file is either ``{"witnesses": [...]}`` or a single witness object.
Witness objects come in two shapes: the flat profile shape
(``witnessProfile`` / ``witnessBackground`` / ``fullWitnessInformation``) and
the nested scenario shape (``personalDetails`` / ``officialStatement`` /
``actualEvents`` ...), which is normalized into the flat one.
"""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from deposim.core.errors import ErrorCode, FileError, ValidationError
from deposim.core.logging import get_logger
from deposim.core.schemas_witness import WitnessProfile

logger = get_logger(__name__)


def is_nested_format(data: dict[str, Any]) -> bool:
    return "personalDetails" in data and "witnessBackground" not in data


def normalize_nested_witness(data: dict[str, Any]) -> dict[str, Any]:
    """Map the nested scenario shape onto the flat witness profile shape."""
    personal = data.get("personalDetails") or {}
    official = data.get("officialStatement") or {}
    profile = data.get("witnessProfile") or {}

    return {
        "name": personal.get("fullName"),
        "witnessProfile": {
            "witnessId": profile.get("witnessId"),
            "caseReference": profile.get("caseReference"),
        },
        "witnessBackground": {
            "personalDetails": personal,
            "professionalLife": data.get("professionalLife"),
            "personalLifeAndRelationships": data.get("personalLifeAndRelationships"),
        },
        "witnessMotivations": data.get("witnessMotivations") or {},
        "fullWitnessInformation": {
            "officialStatementSummary": official.get("summary"),
            "narrativeOfEvents": data.get("actualEvents"),
            "descriptionOfPerpetrator": data.get("perpetratorDescription"),
            "inconsistenciesAndEvasions": data.get("vulnerabilities"),
        },
    }


def parse_witness(data: Any, index: int = 0) -> WitnessProfile:
    """
    Validate one witness object.

    Raises:
        ValidationError: If the object is not a witness profile
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Witness #{index + 1} must be an object",
            field=f"witnesses[{index}]",
            code=ErrorCode.WITNESS_DATA_INVALID,
        )
    if is_nested_format(data):
        data = normalize_nested_witness(data)

    try:
        return WitnessProfile.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise ValidationError(
            f"Witness #{index + 1} is invalid: {'.'.join(str(p) for p in first['loc'])} "
            f"{first['msg']}",
            field=f"witnesses[{index}]",
            code=ErrorCode.WITNESS_DATA_INVALID,
        ) from e


def load_case_data(data: Any) -> list[WitnessProfile]:
    """
    Parse a case file into its witness pool.

    Raises:
        ValidationError: If the structure is not a case file or a witness is invalid
    """
    if not isinstance(data, dict) or not (
        "witnesses" in data or "witnessProfile" in data or "personalDetails" in data
    ):
        raise ValidationError(
            "Invalid case file structure. Must contain a 'witnesses' array or witness profile.",
            field="case_data",
            code=ErrorCode.WITNESS_DATA_INVALID,
        )

    raw_witnesses = data["witnesses"] if "witnesses" in data else [data]
    if not isinstance(raw_witnesses, list) or not raw_witnesses:
        raise ValidationError(
            "'witnesses' must be a non-empty array",
            field="witnesses",
            code=ErrorCode.WITNESS_DATA_INVALID,
        )

    witnesses = [parse_witness(raw, i) for i, raw in enumerate(raw_witnesses)]
    logger.info(f"Loaded case file with {len(witnesses)} witness(es)")
    return witnesses


def load_case_file(content: str | bytes, file_name: str = "case.json") -> list[WitnessProfile]:
    """
    Parse case file JSON text.

    Raises:
        FileError: If the content is not JSON
        ValidationError: If the JSON is not a valid case file
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FileError(
            f"Case file is not valid JSON: {e}",
            file_name,
            "parse",
            code=ErrorCode.FILE_PARSE_ERROR,
        ) from e
    return load_case_data(data)
