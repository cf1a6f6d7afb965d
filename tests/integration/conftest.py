"""Integration test fixtures (service checks and prerequisites).

Integration tests are skipped if a local LLM server is not running.
"""

import os

import httpx
import pytest

LOCAL_LLM_URL = os.environ.get("AI_TAGGER_TEST_ENDPOINT", "http://localhost:11434")
LOCAL_LLM_MODEL = os.environ.get("AI_TAGGER_TEST_MODEL", "llama3.1")


@pytest.fixture(scope="session")
def check_local_llm():
    """Check that a local model server answers at LOCAL_LLM_URL.
    
    Skips tests if it is not reachable.
    """
    try:
        response = httpx.get(f"{LOCAL_LLM_URL}/api/tags", timeout=5)
        if response.status_code != 200:
            pytest.skip("Local LLM server not available (non-200 status)")
    except httpx.HTTPError as e:
        pytest.skip(f"Local LLM server not available: {e}")


@pytest.fixture
def local_settings(test_settings, check_local_llm):
    """Settings pointing at the local server under test."""
    return test_settings.model_copy(update={
        "LLM_SERVICE_TYPE": "local",
        "LLM_ENDPOINT": LOCAL_LLM_URL,
        "LLM_MODEL": LOCAL_LLM_MODEL,
        "REQUEST_TIMEOUT_MS": 120000,
    })
