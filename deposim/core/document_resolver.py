"""Decide which exhibits an examiner question is referring to.

Each signal adds to a document's score at most once:

    exhibit letter mention       +100
    document type word           +20
    date (shared components)     +30
    person name                  +25
    quoted text found verbatim   +40
    topic overlap                +5 per matching topic
    type-specific hint words     +10 per matching hint

Only documents scoring above zero are returned, best first, top three.
"""

import re
from collections.abc import Iterable

from deposim.core.entity_extraction import MONTHS
from deposim.core.schemas_documents import DocumentReferenceMatch, ReferenceDocument

EXHIBIT_SCORE = 100
TYPE_SCORE = 20
DATE_SCORE = 30
NAME_SCORE = 25
QUOTE_SCORE = 40
TOPIC_SCORE = 5
HINT_SCORE = 10
MAX_RESULTS = 3

MIN_TOPIC_WORD_LENGTH = 4
MIN_QUOTE_LENGTH = 4
MIN_SHARED_DATE_COMPONENTS = 2

# Words suggesting a question is about a given kind of document
CONTEXT_HINTS: dict[str, tuple[str, ...]] = {
    "email": ("sent", "wrote", "reply", "replied", "inbox", "forwarded", "message"),
    "contract": ("signed", "terms", "clause", "obligation", "breach", "party"),
    "letter": ("wrote", "signed", "mailed", "addressed", "received"),
    "report": ("findings", "concluded", "investigation", "investigator", "incident"),
    "memorandum": ("memo", "directive", "policy", "circulated"),
    "receipt": ("paid", "cost", "price", "purchase", "bought", "amount", "charged"),
    "document": (),
}

NAME_TOKEN_STOPWORDS = frozenset({"the", "and", "from", "dear", "inc", "llc", "corp"})

_MONTH_NUMBERS = {name.lower(): str(i) for i, name in enumerate(MONTHS, start=1)}
_QUOTE_PATTERN = re.compile(r"[\"“]([^\"”]+)[\"”]|'([^']+)'")
_EXHIBIT_PATTERN = re.compile(r"\bexhibit\s+([a-z])\b", re.IGNORECASE)


def _words(text: str) -> list[str]:
    return re.findall(r"[a-z0-9]+", text.lower())


def date_components(text: str) -> set[str]:
    """Numbers and month names, normalized ("March" and "03" both become "3")."""
    components = set()
    for token in _words(text):
        if token in _MONTH_NUMBERS:
            components.add(_MONTH_NUMBERS[token])
        elif token.isdigit():
            components.add(str(int(token)))
    return components


def _date_matches(user_input: str, dates: Iterable[str]) -> bool:
    lowered = user_input.lower()
    input_components = date_components(user_input)
    for date in dates:
        if date.lower() in lowered:
            return True
        if len(input_components & date_components(date)) >= MIN_SHARED_DATE_COMPONENTS:
            return True
    return False


def _name_matches(user_input: str, parties: Iterable[str]) -> bool:
    lowered = user_input.lower()
    input_words = set(_words(user_input))
    for party in parties:
        if party.lower() in lowered:
            return True
        tokens = [t for t in _words(party) if len(t) >= 3 and t not in NAME_TOKEN_STOPWORDS]
        if any(token in input_words for token in tokens):
            return True
    return False


def _quoted_fragments(user_input: str) -> list[str]:
    fragments = []
    for match in _QUOTE_PATTERN.finditer(user_input):
        fragment = (match.group(1) or match.group(2) or "").strip()
        if len(fragment) >= MIN_QUOTE_LENGTH:
            fragments.append(fragment)
    return fragments


def score_document(user_input: str, doc: ReferenceDocument) -> DocumentReferenceMatch:
    """Score one document against the question, recording why."""
    lowered = user_input.lower()
    input_words = set(_words(user_input))
    meta = doc.metadata
    score = 0
    reasons: list[str] = []

    mentioned = {m.upper() for m in _EXHIBIT_PATTERN.findall(user_input)}
    if doc.exhibit_letter in mentioned:
        score += EXHIBIT_SCORE
        reasons.append(f"Exhibit {doc.exhibit_letter} mentioned")

    if meta.document_type and re.search(rf"\b{re.escape(meta.document_type)}s?\b", lowered):
        score += TYPE_SCORE
        reasons.append(f"document type '{meta.document_type}'")

    if meta.dates and _date_matches(user_input, meta.dates):
        score += DATE_SCORE
        reasons.append("date reference")

    if meta.parties and _name_matches(user_input, meta.parties):
        score += NAME_SCORE
        reasons.append("person named in document")

    text_lower = doc.text_content.lower()
    if any(fragment.lower() in text_lower for fragment in _quoted_fragments(user_input)):
        score += QUOTE_SCORE
        reasons.append("quoted text found in document")

    topic_words = {w for w in input_words if len(w) >= MIN_TOPIC_WORD_LENGTH and w.isalpha()}
    topic_matches = len(topic_words & set(meta.key_topics))
    if topic_matches:
        score += TOPIC_SCORE * topic_matches
        reasons.append(f"{topic_matches} topic keyword(s)")

    hints = CONTEXT_HINTS.get(meta.document_type, ())
    hint_matches = sum(1 for hint in hints if hint in input_words)
    if hint_matches:
        score += HINT_SCORE * hint_matches
        reasons.append(f"{hint_matches} contextual hint(s) for {meta.document_type}")

    return DocumentReferenceMatch(document=doc, score=score, reasons=reasons)


def resolve_document_references(
    user_input: str, documents: Iterable[ReferenceDocument]
) -> list[DocumentReferenceMatch]:
    """
    Rank the documents a question appears to refer to.

    Args:
        user_input: Examiner's question
        documents: Registered exhibits

    Returns:
        Up to three matches with score > 0, highest first (ties keep registry order)
    """
    if not user_input or not user_input.strip():
        return []

    matches = [score_document(user_input, doc) for doc in documents]
    ranked = sorted((m for m in matches if m.score > 0), key=lambda m: m.score, reverse=True)
    return ranked[:MAX_RESULTS]
