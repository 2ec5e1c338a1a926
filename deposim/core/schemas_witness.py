"""Pydantic schemas for witness profiles.

Field names follow the case-file JSON (camelCase aliases) so a dossier can be
loaded and re-serialized into prompts without losing keys. Unknown keys are
kept as extras.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CaseFileModel(BaseModel):
    """Base for models mirroring case-file JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


class WitnessIdentity(_CaseFileModel):
    """Identifiers tying a witness to a case."""

    witness_id: str | None = Field(default=None, alias="witnessId")
    case_reference: str | None = Field(default=None, alias="caseReference")


class WitnessMotivations(_CaseFileModel):
    """What the witness is hiding and how willing they are to lie about it."""

    primary_motivation_to_conceal: str = Field(default="", alias="primaryMotivationToConceal")
    perjury_risk: float = Field(
        default=0.0, alias="perjuryRisk", description="Base probability of lying when threatened"
    )

    @field_validator("primary_motivation_to_conceal", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return value or ""

    @field_validator("perjury_risk", mode="before")
    @classmethod
    def _validate_risk(cls, value: Any) -> float:
        if value is None:
            return 0.0
        risk = float(value)
        if not 0.0 <= risk <= 1.0:
            raise ValueError("perjuryRisk must be between 0 and 1")
        return risk


class FullWitnessInformation(_CaseFileModel):
    """Narrative fields: the public statement and what actually happened."""

    official_statement_summary: str | None = Field(default=None, alias="officialStatementSummary")
    official_reason_for_termination: str | None = Field(
        default=None, alias="officialReasonForTermination"
    )
    narrative_of_events: Any = Field(default=None, alias="narrativeOfEvents")
    description_of_perpetrator: Any = Field(default=None, alias="descriptionOfPerpetrator")
    inconsistencies_and_evasions: Any = Field(default=None, alias="inconsistenciesAndEvasions")


class WitnessProfile(_CaseFileModel):
    """One simulated deponent."""

    name: str | None = None
    witness_profile: WitnessIdentity = Field(default_factory=WitnessIdentity, alias="witnessProfile")
    witness_background: dict[str, Any] = Field(default_factory=dict, alias="witnessBackground")
    witness_motivations: WitnessMotivations = Field(
        default_factory=WitnessMotivations, alias="witnessMotivations"
    )
    full_witness_information: FullWitnessInformation = Field(
        default_factory=FullWitnessInformation, alias="fullWitnessInformation"
    )

    @field_validator(
        "witness_profile",
        "witness_background",
        "witness_motivations",
        "full_witness_information",
        mode="before",
    )
    @classmethod
    def _null_section_to_empty(cls, value: Any) -> Any:
        # Case files write absent sections as null
        return {} if value is None else value

    @property
    def display_name(self) -> str:
        """Best available name for the witness."""
        personal = self.witness_background.get("personalDetails") or {}
        return self.name or personal.get("fullName") or "Unnamed Witness"

    @property
    def case_reference(self) -> str | None:
        return self.witness_profile.case_reference

    @property
    def secret(self) -> str:
        """The concealed fact (empty when the witness has nothing to hide)."""
        return self.witness_motivations.primary_motivation_to_conceal

    @property
    def perjury_risk(self) -> float:
        return self.witness_motivations.perjury_risk

    def to_dossier(self) -> dict[str, Any]:
        """Full case-file representation, as sent to the model in character."""
        return self.model_dump(by_alias=True, exclude_none=True)
