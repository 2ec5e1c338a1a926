"""Tests for the per-session exhibit registry."""

import pytest

from deposim.core.document_registry import DocumentRegistry, format_exhibit
from deposim.core.errors import FileError, ValidationError
from tests.fixtures_deposition import make_document


def _words(count: int, word: str = "evidence") -> str:
    return " ".join([word] * count)


def test_exhibit_letters_are_sequential():
    registry = DocumentRegistry()

    docs = [registry.add_text_document(f"doc{i}.txt", _words(20)) for i in range(3)]

    assert [d.exhibit_letter for d in docs] == ["A", "B", "C"]
    assert len(registry) == 3


def test_document_cap_evicts_oldest_without_raising():
    registry = DocumentRegistry(max_documents=3)

    for i in range(4):
        registry.add_text_document(f"doc{i}.txt", _words(20))

    assert len(registry) == 3
    assert [d.exhibit_letter for d in registry.list_documents()] == ["B", "C", "D"]
    assert registry.get_by_exhibit_letter("A") is None


def test_token_ceiling_evicts_oldest_first():
    registry = DocumentRegistry(max_tokens=50, max_documents=10)

    # 26 words -> 20 tokens each
    first = registry.add_text_document("first.txt", _words(26))
    registry.add_text_document("second.txt", _words(26))
    third = registry.add_text_document("third.txt", _words(26))

    assert first.token_count == 20
    assert registry.get_document(first.id) is None
    assert [d.file_name for d in registry.list_documents()] == ["second.txt", "third.txt"]
    assert third.exhibit_letter == "C"
    assert registry.total_tokens() == 40


def test_token_eviction_removes_only_as_many_as_needed():
    registry = DocumentRegistry(max_tokens=100, max_documents=10)
    for i in range(4):
        registry.add_text_document(f"small{i}.txt", _words(26))

    registry.add_text_document("big.txt", _words(53))  # 40 tokens

    assert [d.file_name for d in registry.list_documents()] == [
        "small1.txt",
        "small2.txt",
        "small3.txt",
        "big.txt",
    ]


def test_single_document_over_token_limit_is_rejected():
    registry = DocumentRegistry(max_tokens=10)

    with pytest.raises(FileError, match="too large"):
        registry.add_text_document("huge.txt", _words(40))

    assert len(registry) == 0


def test_default_registry_evicts_instead_of_running_out_of_letters():
    registry = DocumentRegistry()
    docs = [registry.add_text_document(f"doc{i}.txt", _words(12)) for i in range(27)]

    assert registry.max_documents == 26
    assert len(registry) == 26
    assert registry.get_document(docs[0].id) is None
    assert docs[25].exhibit_letter == "Z"
    assert docs[26].exhibit_letter == "A"


def test_document_cap_is_limited_to_the_alphabet():
    assert DocumentRegistry(max_documents=50).max_documents == 26


def test_letters_are_not_reused_until_the_alphabet_is_used_up():
    registry = DocumentRegistry(max_documents=5)
    for i in range(26):
        registry.add_text_document(f"doc{i}.txt", _words(12))

    assert registry.list_documents()[-1].exhibit_letter == "Z"

    # V is evicted; W-Z are still held
    one_more = registry.add_text_document("one_more.txt", _words(12))
    assert one_more.exhibit_letter == "A"
    assert [d.exhibit_letter for d in registry.list_documents()] == ["W", "X", "Y", "Z", "A"]
    assert registry.add_text_document("next.txt", _words(12)).exhibit_letter == "B"

    registry.clear_all()
    assert len(registry) == 0
    assert registry.add_text_document("fresh.txt", _words(12)).exhibit_letter == "A"


def test_removed_letter_is_not_reassigned():
    registry = DocumentRegistry()
    first = registry.add_text_document("a.txt", _words(12))
    registry.remove_document(first.id)

    assert registry.add_text_document("b.txt", _words(12)).exhibit_letter == "B"


def test_unsupported_file_type_is_rejected():
    registry = DocumentRegistry()

    with pytest.raises(ValidationError):
        registry.add_text_document("payload.exe", _words(12))


@pytest.mark.parametrize(
    "text",
    ["", "too short", "1234567890 !!!! 0987654321 #### 5555555555", "bad\x00binary content here"],
)
def test_unreadable_content_is_rejected(text):
    registry = DocumentRegistry()

    with pytest.raises(FileError):
        registry.add_text_document("notes.txt", text)


def test_script_content_is_rejected():
    registry = DocumentRegistry()

    with pytest.raises(ValidationError):
        registry.add_text_document("notes.txt", "Hello there <script>alert(1)</script>")


def test_large_documents_get_a_summary():
    registry = DocumentRegistry(summary_threshold=10)
    paragraphs = [
        "The first paragraph describes the meeting agenda in enough detail to count.",
        "The middle paragraph is long enough to count but gets omitted from the summary.",
        "The final paragraph records the outcome of the meeting and who attended it.",
    ]

    doc = registry.add_text_document("minutes.txt", "\n".join(paragraphs))

    assert doc.summary == (
        f"{paragraphs[0]}\n\n[... content omitted ...]\n\n{paragraphs[2]}"
    )


def test_small_documents_have_no_summary():
    doc = DocumentRegistry().add_text_document("short.txt", _words(12))

    assert doc.summary is None


def test_add_upload_decodes_bytes():
    registry = DocumentRegistry()
    text = "From: Mark Hale\nTo: Sarah Collins\nPlease keep the budget review private."

    doc = registry.add_upload("message.txt", "text/plain", text.encode("utf-8"))

    assert doc.text_content == text
    assert doc.metadata.document_type == "email"
    assert "Mark Hale" in doc.metadata.parties


def test_add_upload_rejects_oversized_bytes():
    registry = DocumentRegistry(max_upload_bytes=16)

    with pytest.raises(FileError, match="too large"):
        registry.add_upload("big.txt", "text/plain", _words(10).encode("utf-8"))


def test_prebuilt_documents_keep_their_letter():
    registry = DocumentRegistry()

    registry.add_prebuilt(make_document("C"))
    next_doc = registry.add_text_document("later.txt", _words(12))

    assert registry.get_by_exhibit_letter("c") is not None
    assert next_doc.exhibit_letter == "D"


def test_prebuilt_document_with_taken_letter_gets_next_free_letter():
    registry = DocumentRegistry()
    registry.add_text_document("upload.txt", _words(12))

    added = registry.add_prebuilt(make_document("A"))

    assert added.exhibit_letter == "B"


def test_prebuilt_document_registered_twice_keeps_one_entry():
    registry = DocumentRegistry()

    first = registry.add_prebuilt(make_document("A"))
    again = registry.add_prebuilt(make_document("A"))

    assert again is first
    assert [d.exhibit_letter for d in registry.list_documents()] == ["A"]


def test_prebuilt_document_does_not_take_a_freed_letter():
    registry = DocumentRegistry()
    upload = registry.add_text_document("upload.txt", _words(12))
    registry.remove_document(upload.id)

    added = registry.add_prebuilt(make_document("A"))

    assert added.exhibit_letter == "B"


def test_oversized_prebuilt_document_is_rejected():
    registry = DocumentRegistry(max_tokens=5)

    with pytest.raises(FileError, match="too large"):
        registry.add_prebuilt(make_document("A", text=_words(6)))

    assert len(registry) == 0


def test_active_flags_and_context_text():
    registry = DocumentRegistry()
    doc = registry.add_text_document("memo.txt", "MEMORANDUM: the policy changes next week.")

    registry.mark_active(doc.id)
    assert registry.get_document(doc.id).is_active is True

    registry.clear_active()
    assert registry.get_document(doc.id).is_active is False

    context = registry.get_document_for_context(doc.id)
    assert context == format_exhibit(doc)
    assert context.startswith("DEPOSITION EXHIBIT A (memorandum):\nFile: memo.txt\n")
    assert context.endswith("[END OF EXHIBIT A]")
    assert registry.get_document(doc.id).is_active is True
    assert registry.get_document_for_context("missing") == ""


def test_can_upload_checks_remaining_budget():
    registry = DocumentRegistry(max_tokens=50)
    registry.add_text_document("a.txt", _words(26))

    assert registry.can_upload(30) is True
    assert registry.can_upload(31) is False
