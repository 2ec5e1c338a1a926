"""Pytest configuration and fixtures."""

import os

import pytest

# Set before any deposim module caches settings
os.environ["DEPOSIM_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["LLM_RETRY_INITIAL_DELAY"] = "0"

from tests.fixtures_deposition import make_witness, make_witness_data  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["DEPOSIM_ENV"] = "test"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["LLM_RETRY_INITIAL_DELAY"] = "0"


@pytest.fixture
def witness_data():
    return make_witness_data()


@pytest.fixture
def witness():
    return make_witness()


@pytest.fixture
def honest_witness():
    return make_witness(name="Tom Reyes", secret="", perjury_risk=0.0)
