"""Pydantic schemas for the truthfulness engine."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Coarse category of an examiner question."""

    CONFRONTATIONAL = "confrontational"
    TIMELINE = "timeline"
    PERSONAL = "personal"
    DOCUMENTARY = "documentary"
    BACKGROUND = "background"
    GENERAL = "general"


class Behavior(str, Enum):
    """How the witness answers a given question."""

    TRUTHFUL = "truthful"
    EVASIVE = "evasive"
    PERJURY = "perjury"


class StressFactors(BaseModel):
    """Pressure read from the most recent exchanges."""

    consecutive_pressure: int = 0
    objection_count: int = 0
    aggressive_tone: int = 0
    current_stress_level: float = 0.0
    is_under_pressure: bool = False


class BehaviorDecision(BaseModel):
    """Outcome of evaluating one question."""

    question_type: QuestionType = QuestionType.GENERAL
    threat_level: float = Field(default=0.0, ge=0.0, le=1.0)
    stress_factors: StressFactors = Field(default_factory=StressFactors)
    consistency_risk: float = Field(default=0.0, ge=0.0, le=1.0)
    perjury_probability: float = Field(default=0.0, ge=0.0, le=0.95)
    evasion_probability: float = Field(default=0.0, ge=0.0, le=0.9)
    behavior: Behavior = Behavior.TRUTHFUL
    explanation: str = ""


class ConsistencyRecord(BaseModel):
    """What the witness did the last time a question with this key came up."""

    was_lie: bool
    was_evasive: bool
    threat_level: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class QuestionLogEntry(BaseModel):
    question: str
    decision: BehaviorDecision
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TruthfulnessSessionState(BaseModel):
    """Per-witness engine state; recreated whenever a witness is loaded."""

    base_perjury_risk: float = 0.0
    secret: str = ""
    stress_level: float = Field(default=0.0, ge=0.0, le=1.0)
    direct_lie_count: int = 0
    evasion_count: int = 0
    consistency_tracker: dict[str, ConsistencyRecord] = Field(default_factory=dict)
    question_history: list[QuestionLogEntry] = Field(default_factory=list)


class SessionStatistics(BaseModel):
    """Aggregate view of the witness's behaviour so far."""

    total_questions: int = 0
    direct_lies: int = 0
    evasive_answers: int = 0
    stress_level: float = 0.0
    base_perjury_risk: float = 0.0
    average_threat_level: float = 0.0
