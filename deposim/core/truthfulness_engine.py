"""Witness truthfulness engine.

Decides, per examiner question, whether the witness answers truthfully,
evasively or commits perjury. The scores are additive heuristics meant to
produce plausible, path-dependent deception rather than statistical rigor:

- threat: how close the question comes to the concealed fact
- stress: pressure accumulated over the last few exchanges
- consistency: whether the witness already lied or evaded on this topic
- two random draws against the resulting probabilities

The random source is injectable so tests can seed it.
"""

import random
import re
from collections.abc import Sequence
from typing import Any

from deposim.core.logging import get_logger
from deposim.core.schemas_truthfulness import (
    Behavior,
    BehaviorDecision,
    ConsistencyRecord,
    QuestionLogEntry,
    QuestionType,
    SessionStatistics,
    StressFactors,
    TruthfulnessSessionState,
)
from deposim.core.schemas_witness import WitnessProfile

logger = get_logger(__name__)


# =========================
# Heuristic configuration
# =========================

# Ordered: the first category with a matching phrase wins
QUESTION_CATEGORY_PHRASES: list[tuple[QuestionType, tuple[str, ...]]] = [
    (QuestionType.CONFRONTATIONAL, ("isn't it true", "did you not", "you lied", "that's not true")),
    (QuestionType.TIMELINE, ("where were you", "what time", "when did", "how long")),
    (QuestionType.PERSONAL, ("relationship", "affair", "romantic", "intimate")),
    (QuestionType.DOCUMENTARY, ("exhibit", "document", "email", "receipt")),
    (QuestionType.BACKGROUND, ("your name", "your job", "where do you work")),
]

SECRET_STOPWORDS = frozenset({"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"})
MAX_SECRET_KEYWORDS = 10

HONESTY_WORDS = ("truth", "honest", "lie")
SECRET_TIME_WORDS = ("time", "when")

PRESSURE_MARKERS = ("isn't it true", "you said", "but earlier", "contradicts")
AGGRESSION_MARKERS = ("!", "clearly", "obviously", "admit")
STRESS_WINDOW = 6  # last three question/answer pairs

KEYWORD_THREAT = 0.3
DOCUMENT_THREAT = 0.4
HONESTY_THREAT = 0.2
TIMELINE_THREAT = 0.3

PRESSURE_STRESS = 0.2
AGGRESSION_STRESS = 0.1
PRESSURE_COUNT_THRESHOLD = 2
STRESS_THRESHOLD = 0.6

PRIOR_LIE_RISK = 0.8
PRIOR_EVASION_RISK = 0.5
BASE_CONSISTENCY_RISK = 0.1

CATEGORY_PERJURY_MODIFIERS: dict[QuestionType, float] = {
    QuestionType.CONFRONTATIONAL: 0.3,
    QuestionType.DOCUMENTARY: -0.2,
    QuestionType.BACKGROUND: -0.4,
}
MAX_PERJURY_PROBABILITY = 0.95
MAX_EVASION_PROBABILITY = 0.9


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def _lowered(text: Any) -> str:
    return text.lower() if isinstance(text, str) else ""


def categorize_question(question: str) -> QuestionType:
    """Categorize a question by phrase matching; first match wins."""
    lowered = _lowered(question)
    for category, phrases in QUESTION_CATEGORY_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return category
    return QuestionType.GENERAL


def extract_secret_keywords(secret_text: str) -> list[str]:
    """Significant words (length > 3, not stopwords) of the concealed fact."""
    words = _lowered(secret_text).split()
    keywords = [w for w in words if len(w) > 3 and w not in SECRET_STOPWORDS]
    return keywords[:MAX_SECRET_KEYWORDS]


def normalize_question_key(question: str) -> str:
    """Order-insensitive key so rephrasings of a question map together."""
    letters_only = re.sub(r"[^a-z\s]", "", _lowered(question))
    words = sorted(w for w in letters_only.split() if len(w) > 3)
    return " ".join(words[:5])


def _message_field(message: Any, name: str) -> str:
    if isinstance(message, dict):
        value = message.get(name, "")
    else:
        value = getattr(message, name, "")
    return value if isinstance(value, str) else ""


class TruthfulnessEngine:
    """Per-session behaviour state machine for one witness."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self.state: TruthfulnessSessionState | None = None
        self.last_decision: BehaviorDecision | None = None

    @property
    def is_initialized(self) -> bool:
        return self.state is not None

    def initialize_session(self, witness: WitnessProfile | None) -> TruthfulnessSessionState:
        """
        Reset all counters for a newly loaded witness.

        Missing witness or motivation data yields a zero-risk state rather
        than an error.
        """
        if witness is None:
            logger.warning("Truthfulness engine initialized without a witness; using zero risk")
            self.state = TruthfulnessSessionState()
        else:
            self.state = TruthfulnessSessionState(
                base_perjury_risk=witness.perjury_risk,
                secret=witness.secret,
            )
        self.last_decision = None

        logger.info(
            f"Truthfulness engine initialized with base risk {self.state.base_perjury_risk}"
        )
        return self.state

    def reset(self) -> None:
        """Discard all state (witness unloaded)."""
        self.state = None
        self.last_decision = None

    # =========================
    # Evaluation
    # =========================

    def evaluate_question(
        self,
        question: str,
        recent_history: Sequence[Any] = (),
        document_contexts: Sequence[str] = (),
    ) -> BehaviorDecision:
        """
        Decide how the witness answers ``question``.

        Args:
            question: Examiner's question
            recent_history: Prior messages (dicts or ChatMessage); only the
                last few are read
            document_contexts: Text of documents in play for this question

        Returns:
            BehaviorDecision with the selected behaviour and its inputs
        """
        if self.state is None:
            logger.warning("Truthfulness engine used before initialization; defaulting to truthful")
            return self.default_decision()

        question_type = categorize_question(question)
        threat_level = self._threat_level(question, question_type, document_contexts)
        stress_factors = self._stress_factors(recent_history)
        consistency_risk = self._consistency_risk(question)

        perjury_probability = self._perjury_probability(
            question_type, threat_level, stress_factors, consistency_risk
        )
        evasion_probability = self._evasion_probability(
            threat_level, perjury_probability, consistency_risk
        )
        behavior = self._select_behavior(perjury_probability, evasion_probability)

        decision = BehaviorDecision(
            question_type=question_type,
            threat_level=threat_level,
            stress_factors=stress_factors,
            consistency_risk=consistency_risk,
            perjury_probability=perjury_probability,
            evasion_probability=evasion_probability,
            behavior=behavior,
        )
        decision.explanation = self._explain(decision)

        self._record(question, decision)
        self.last_decision = decision

        logger.debug(
            f"Question evaluated: type={question_type.value} threat={threat_level:.2f} "
            f"perjury_p={perjury_probability:.2f} evasion_p={evasion_probability:.2f} "
            f"behavior={behavior.value}"
        )
        return decision

    def _threat_level(
        self,
        question: str,
        question_type: QuestionType,
        document_contexts: Sequence[str],
    ) -> float:
        secret = self.state.secret
        lowered = _lowered(question)
        keywords = extract_secret_keywords(secret)

        threat = KEYWORD_THREAT * sum(1 for keyword in keywords if keyword in lowered)

        for doc_text in document_contexts:
            if self._document_complicates_story(doc_text, keywords):
                threat += DOCUMENT_THREAT

        if any(word in lowered for word in HONESTY_WORDS):
            threat += HONESTY_THREAT

        secret_lower = secret.lower()
        if question_type == QuestionType.TIMELINE and any(
            word in secret_lower for word in SECRET_TIME_WORDS
        ):
            threat += TIMELINE_THREAT

        return _clamp(threat, 0.0, 1.0)

    @staticmethod
    def _document_complicates_story(doc_text: str, keywords: list[str]) -> bool:
        lowered = _lowered(doc_text)
        return any(keyword in lowered for keyword in keywords)

    def _stress_factors(self, recent_history: Sequence[Any]) -> StressFactors:
        pressure = 0
        aggression = 0
        objections = 0

        for message in list(recent_history)[-STRESS_WINDOW:]:
            role = _message_field(message, "role")
            content = _message_field(message, "content").lower()
            if role == "user":
                if any(marker in content for marker in PRESSURE_MARKERS):
                    pressure += 1
                if any(marker in content for marker in AGGRESSION_MARKERS):
                    aggression += 1
            elif role == "assistant" and "objection" in content:
                objections += 1

        self.state.stress_level = _clamp(
            self.state.stress_level + pressure * PRESSURE_STRESS + aggression * AGGRESSION_STRESS,
            0.0,
            1.0,
        )

        return StressFactors(
            consecutive_pressure=pressure,
            objection_count=objections,
            aggressive_tone=aggression,
            current_stress_level=self.state.stress_level,
            is_under_pressure=(
                pressure >= PRESSURE_COUNT_THRESHOLD or self.state.stress_level > STRESS_THRESHOLD
            ),
        )

    def _consistency_risk(self, question: str) -> float:
        previous = self.state.consistency_tracker.get(normalize_question_key(question))
        if previous is not None:
            if previous.was_lie:
                return PRIOR_LIE_RISK
            if previous.was_evasive:
                return PRIOR_EVASION_RISK
        return BASE_CONSISTENCY_RISK

    def _perjury_probability(
        self,
        question_type: QuestionType,
        threat_level: float,
        stress_factors: StressFactors,
        consistency_risk: float,
    ) -> float:
        probability = self.state.base_perjury_risk
        probability += threat_level * 0.4
        if stress_factors.is_under_pressure:
            probability += 0.2
        # Escalating commitment: each lie makes the next one likelier
        probability += self.state.direct_lie_count * 0.15
        # Repeating a question already lied about pulls back toward the truth
        if consistency_risk > 0.5:
            probability -= 0.3
        probability += CATEGORY_PERJURY_MODIFIERS.get(question_type, 0.0)
        return _clamp(probability, 0.0, MAX_PERJURY_PROBABILITY)

    @staticmethod
    def _evasion_probability(
        threat_level: float, perjury_probability: float, consistency_risk: float
    ) -> float:
        probability = 0.3
        probability += threat_level * 0.5
        if 0.3 < perjury_probability < 0.7:
            probability += 0.3
        probability += consistency_risk * 0.4
        return _clamp(probability, 0.0, MAX_EVASION_PROBABILITY)

    def _select_behavior(self, perjury_probability: float, evasion_probability: float) -> Behavior:
        # Two independent draws per question
        perjury_roll = self._rng.random()
        evasion_roll = self._rng.random()

        if perjury_roll < perjury_probability:
            self.state.direct_lie_count += 1
            return Behavior.PERJURY
        if evasion_roll < evasion_probability:
            self.state.evasion_count += 1
            return Behavior.EVASIVE
        return Behavior.TRUTHFUL

    def _explain(self, decision: BehaviorDecision) -> str:
        if decision.behavior == Behavior.PERJURY:
            return (
                f"LYING: High threat to secret ({decision.threat_level * 100:.0f}%), "
                f"witness chooses to lie to protect: {self.state.secret}"
            )
        if decision.behavior == Behavior.EVASIVE:
            return (
                "EVASIVE: Moderate threat, witness uses evasion rather than direct lies. "
                f"Current stress: {decision.stress_factors.current_stress_level * 100:.0f}%"
            )
        return (
            "TRUTHFUL: Low threat or witness maintains honesty. "
            f"Question type: {decision.question_type.value}"
        )

    def _record(self, question: str, decision: BehaviorDecision) -> None:
        self.state.consistency_tracker[normalize_question_key(question)] = ConsistencyRecord(
            was_lie=decision.behavior == Behavior.PERJURY,
            was_evasive=decision.behavior == Behavior.EVASIVE,
            threat_level=decision.threat_level,
        )
        self.state.question_history.append(QuestionLogEntry(question=question, decision=decision))

    # =========================
    # Reporting
    # =========================

    @staticmethod
    def default_decision() -> BehaviorDecision:
        """Near-zero-risk truthful decision used when no witness is loaded."""
        return BehaviorDecision(
            question_type=QuestionType.GENERAL,
            threat_level=0.0,
            consistency_risk=0.0,
            perjury_probability=0.0,
            evasion_probability=0.1,
            behavior=Behavior.TRUTHFUL,
            explanation="No witness profile loaded - default truthful behavior",
        )

    def get_session_statistics(self) -> SessionStatistics:
        if self.state is None:
            return SessionStatistics()

        history = self.state.question_history
        average_threat = (
            sum(entry.decision.threat_level for entry in history) / len(history) if history else 0.0
        )
        return SessionStatistics(
            total_questions=len(history),
            direct_lies=self.state.direct_lie_count,
            evasive_answers=self.state.evasion_count,
            stress_level=self.state.stress_level,
            base_perjury_risk=self.state.base_perjury_risk,
            average_threat_level=average_threat,
        )
