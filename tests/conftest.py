"""
Shared fixtures for the Shahmukhi HP Engine tests.

The remote model is replaced by ``FakeAnalysisClient`` (or by an
``httpx.MockTransport`` in the client tests) so nothing leaves the process.
Each test gets its own Dashboard whose credential file lives in tmp_path.
"""
from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hp_engine.dependencies.dashboard import get_dashboard
from hp_engine.main import app
from hp_engine.models.analysis import AnalysisResponse
from hp_engine.services.credential_store import CredentialStore
from hp_engine.services.dashboard import Dashboard

SHAHMUKHI_LINES = [
    "اوہ پنڈ نوں جاندا اے",
    "راہ وچ اک بندہ ملدا اے",
    "اوہ آکھدا اے کہ رک جا",
    "سویر ہو گئی سی",
    "رکھ ہوا نال جھولدے نیں",
]

CATEGORY_CYCLE = [
    "Narrative HP",
    "None",
    "Quotative HP",
    "None",
    "Episodic HP",
    "None",
    "None",
    "Visualizing HP",
    "None",
    "Internal Evaluation",
]


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def make_segment(position: int, category: str = "None", **overrides: Any) -> Dict[str, Any]:
    tense = "Past" if category == "None" else "Historical Present"
    segment = {
        "originalText": SHAHMUKHI_LINES[position % len(SHAHMUKHI_LINES)],
        "inferredTense": tense,
        "omittedElements": "auxiliary اے deleted" if category != "None" else "",
        "hpCategory": category,
        "reasoning": f"Segment {position} uses the imperfective دا suffix.",
        "contextualMetadata": "oral narrative",
        "position": position,
    }
    segment.update(overrides)
    return segment


def make_payload(
    categories: Optional[List[str]] = None,
    total: Optional[int] = None,
    hp_count: Optional[int] = None,
    ratio: Optional[float] = None,
) -> Dict[str, Any]:
    """Return an analysis response as the model would send it (camelCase)."""
    categories = CATEGORY_CYCLE if categories is None else categories
    sentences = [make_segment(i, cat) for i, cat in enumerate(categories)]
    hp = sum(1 for c in categories if c != "None")
    total = len(sentences) if total is None else total
    hp_count = hp if hp_count is None else hp_count
    if ratio is None:
        ratio = hp_count / total if total else 0.0
    return {
        "summary": {
            "totalSentences": total,
            "hpCount": hp_count,
            "tenseSwitchRatio": ratio,
        },
        "qualitativeAnalysis": (
            "The narrator shifts into the present with forms such as 'جاندا' "
            "and 'آکھدا' to pull the listener into the scene.\n\n"
            "Past-tense framing with 'سی' marks the boundaries of each episode."
        ),
        "sentences": sentences,
    }


def make_analysis(**kwargs: Any) -> AnalysisResponse:
    return AnalysisResponse.model_validate(make_payload(**kwargs))


# ---------------------------------------------------------------------------
# Fake remote model
# ---------------------------------------------------------------------------

class FakeAnalysisClient:
    """Records calls and returns a canned result or raises a canned error."""

    def __init__(self, result: Optional[AnalysisResponse] = None) -> None:
        self.result = result or make_analysis()
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, str]] = []

    async def analyze(self, corpus_text: str, credential: str) -> AnalysisResponse:
        self.calls.append({"text": corpus_text, "credential": credential})
        if self.error is not None:
            raise self.error
        return self.result


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def credential_store(tmp_path) -> CredentialStore:
    return CredentialStore(path=str(tmp_path / "credentials.json"))


@pytest.fixture
def dashboard(fake_client: FakeAnalysisClient, credential_store: CredentialStore) -> Dashboard:
    return Dashboard(client=fake_client, store=credential_store)


@pytest_asyncio.fixture
async def client(dashboard: Dashboard) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the dashboard dependency
    overridden to use the per-test Dashboard.
    """
    app.dependency_overrides[get_dashboard] = lambda: dashboard

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

TEST_API_KEY = "test-gemini-key-1234"
