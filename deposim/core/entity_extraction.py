"""Metadata extraction for exhibits: type, dates, parties, topics.

Patterns live in module-level tables so new document kinds or date formats
can be added without touching the extractor functions. ``EXTRACTORS`` maps
each metadata field to the function that fills it.
"""

import re
from collections import Counter
from collections.abc import Callable

# =========================
# Pattern tables
# =========================

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_MONTH_ALT = "|".join(MONTHS)

DATE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),  # MM/DD/YYYY
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),  # YYYY-MM-DD
    re.compile(rf"\b(?:{_MONTH_ALT})\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+(?:{_MONTH_ALT})\s+\d{{4}}\b", re.IGNORECASE),
]
MAX_DATES = 5

PARTY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?:From|To|Dear|Mr\.|Ms\.|Mrs\.|Dr\.)\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"),
    re.compile(r"\b[A-Z][a-z]+\s+[A-Z][a-z]+\b"),  # two-word proper names
]
PARTY_PREFIX = re.compile(r"^(?:From|To|Dear|Mr\.|Ms\.|Mrs\.|Dr\.)\s+")
MAX_PARTIES = 10

TOPIC_STOPWORDS = frozenset(
    {
        "that", "with", "have", "this", "will", "your", "from", "they",
        "know", "want", "been", "good", "much", "some", "time", "very",
        "when", "come", "here", "just", "like", "long", "make", "many",
        "over", "such", "take", "than", "them", "well", "were",
    }
)  # fmt: skip
MAX_TOPICS = 10

# Ordered: the first type whose file-name or content marker matches wins
DOCUMENT_TYPE_RULES: list[tuple[str, tuple[str, ...], tuple[str, ...]]] = [
    # (type, file-name markers, content markers)
    ("email", ("email",), ("from:", "to:")),
    ("contract", ("contract",), ("agreement", "hereby agree")),
    ("letter", ("letter",), ("dear ", "sincerely")),
    ("report", ("report",), ("findings", "conclusion")),
    ("memorandum", ("memo",), ("memorandum",)),
    ("receipt", ("receipt", "invoice"), ("amount paid", "total due", "subtotal")),
]
DEFAULT_DOCUMENT_TYPE = "document"


# =========================
# Extractors
# =========================


def identify_document_type(file_name: str, content: str) -> str:
    lower_name = file_name.lower()
    lower_content = content.lower()
    for doc_type, name_markers, content_markers in DOCUMENT_TYPE_RULES:
        if any(m in lower_name for m in name_markers) or any(
            m in lower_content for m in content_markers
        ):
            return doc_type
    return DEFAULT_DOCUMENT_TYPE


def extract_dates(content: str) -> list[str]:
    """Dates in the common US/ISO/long formats, first five distinct."""
    dates: list[str] = []
    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(content):
            if match.group(0) not in dates:
                dates.append(match.group(0))
    return dates[:MAX_DATES]


def extract_parties(content: str) -> list[str]:
    """Likely person names (salutations, headers, capitalized pairs)."""
    parties: list[str] = []
    for pattern in PARTY_PATTERNS:
        for match in pattern.finditer(content):
            cleaned = PARTY_PREFIX.sub("", match.group(0))
            if 3 < len(cleaned) < 50 and cleaned not in parties:
                parties.append(cleaned)
    return parties[:MAX_PARTIES]


def extract_key_topics(content: str) -> list[str]:
    """Most frequent significant words (longer than four letters)."""
    words = re.sub(r"[^\w\s]", " ", content.lower()).split()
    counts = Counter(w for w in words if len(w) > 4 and w not in TOPIC_STOPWORDS)
    return [word for word, _ in counts.most_common(MAX_TOPICS)]


EXTRACTORS: dict[str, Callable[[str], list[str]]] = {
    "dates": extract_dates,
    "parties": extract_parties,
    "key_topics": extract_key_topics,
}


def extract_metadata(file_name: str, content: str) -> dict[str, object]:
    """Run every registered extractor over a document."""
    metadata: dict[str, object] = {
        "file_name": file_name,
        "document_type": identify_document_type(file_name, content),
    }
    for field_name, extractor in EXTRACTORS.items():
        metadata[field_name] = extractor(content)
    return metadata


def estimate_token_count(text: str) -> int:
    """Rough token estimate: about 0.75 tokens per whitespace-separated word."""
    words = text.split()
    return -(-len(words) * 3 // 4)


def create_summary(content: str) -> str:
    """Extractive summary: first and last substantial paragraphs."""
    paragraphs = [p for p in content.split("\n") if len(p.strip()) > 50]

    summary = ""
    if paragraphs:
        summary += paragraphs[0] + "\n\n"
    if len(paragraphs) > 2:
        summary += "[... content omitted ...]\n\n"
        summary += paragraphs[-1]
    return summary
