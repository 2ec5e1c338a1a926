"""Tests for exhibit metadata extraction."""

import pytest

from deposim.core.entity_extraction import (
    EXTRACTORS,
    create_summary,
    estimate_token_count,
    extract_dates,
    extract_key_topics,
    extract_metadata,
    extract_parties,
    identify_document_type,
)


@pytest.mark.parametrize(
    "file_name,content,expected",
    [
        ("email_export.txt", "plain body", "email"),
        ("notes.txt", "From: a@b.com\nTo: c@d.com", "email"),
        ("notes.txt", "This agreement is binding.", "contract"),
        ("notes.txt", "Dear Sam, thanks.", "letter"),
        ("notes.txt", "Our findings are below.", "report"),
        ("team_memo.txt", "plain body", "memorandum"),
        ("invoice_114.txt", "plain body", "receipt"),
        ("notes.txt", "Subtotal: $12.00", "receipt"),
        ("notes.txt", "Nothing in particular.", "document"),
    ],
)
def test_identify_document_type(file_name, content, expected):
    assert identify_document_type(file_name, content) == expected


def test_extract_dates_supports_common_formats():
    content = "Signed 03/15/2021, filed 2021-04-01, heard March 3, 2021 and on 5 June 2021."

    assert extract_dates(content) == ["03/15/2021", "2021-04-01", "March 3, 2021", "5 June 2021"]


def test_extract_dates_dedupes_and_caps_at_five():
    content = " ".join(f"0{i}/01/2020" for i in range(1, 8)) + " 01/01/2020"

    dates = extract_dates(content)

    assert len(dates) == 5
    assert dates[0] == "01/01/2020"


def test_extract_parties_strips_salutations():
    parties = extract_parties("Dear Jonathan Price,\nI met Ellen Ward at the office.")

    assert "Jonathan Price" in parties
    assert "Ellen Ward" in parties
    assert all(not p.startswith("Dear") for p in parties)


def test_extract_key_topics_by_frequency():
    content = "Budget budget budget. Audit audit. Forecast. The team will meet."

    topics = extract_key_topics(content)

    assert topics[:3] == ["budget", "audit", "forecast"]
    assert "will" not in topics


def test_extract_metadata_runs_every_extractor():
    metadata = extract_metadata("report.txt", "Findings for Mark Hale dated 2021-05-05.")

    assert metadata["file_name"] == "report.txt"
    assert metadata["document_type"] == "report"
    assert set(EXTRACTORS) <= set(metadata)
    assert metadata["dates"] == ["2021-05-05"]
    assert "Mark Hale" in metadata["parties"]


@pytest.mark.parametrize("words,tokens", [(0, 0), (1, 1), (4, 3), (26, 20), (100, 75)])
def test_estimate_token_count(words, tokens):
    assert estimate_token_count(" ".join(["word"] * words)) == tokens


def test_create_summary_short_content_is_empty():
    assert create_summary("short line\nanother short line") == ""
