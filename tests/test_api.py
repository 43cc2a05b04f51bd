"""End-to-end tests for the credential, corpus, analysis, report and feedback endpoints."""
import asyncio
import io
import threading

import pytest
from docx import Document
from httpx import AsyncClient

from hp_engine.config import settings
from hp_engine.exceptions import OracleError
from tests.conftest import TEST_API_KEY, make_analysis

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


async def _ready(client: AsyncClient, text: str = "ایتھے اوہ جاندا اے") -> None:
    resp = await client.put("/api/credential/", json={"api_key": TEST_API_KEY})
    assert resp.status_code == 200
    resp = await client.put("/api/corpus/", json={"text": text})
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Credential
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_credential_status_masks_key(client: AsyncClient):
    resp = await client.get("/api/credential/")
    assert resp.json() == {"configured": False, "hint": None}

    resp = await client.put("/api/credential/", json={"api_key": TEST_API_KEY})
    data = resp.json()
    assert data["configured"] is True
    assert data["hint"].endswith("1234")
    assert TEST_API_KEY not in data["hint"]


@pytest.mark.asyncio
async def test_credential_written_to_store(client: AsyncClient, credential_store):
    await client.put("/api/credential/", json={"api_key": TEST_API_KEY})
    assert await credential_store.load() == TEST_API_KEY


# ---------------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_set_and_clear_corpus(client: AsyncClient):
    resp = await client.put("/api/corpus/", json={"text": "ایتھے"})
    assert resp.json()["text"] == "ایتھے"
    assert resp.json()["characters"] == 5

    resp = await client.delete("/api/corpus/")
    assert resp.json()["text"] == ""


@pytest.mark.asyncio
async def test_upload_text_file(client: AsyncClient):
    files = {"file": ("story.txt", "اوہ پنڈ نوں جاندا اے".encode("utf-8"), "text/plain")}
    resp = await client.post("/api/corpus/upload", files=files)

    assert resp.status_code == 200
    data = resp.json()
    assert data["text"] == "اوہ پنڈ نوں جاندا اے"
    assert data["source"] == "story.txt"


@pytest.mark.asyncio
async def test_upload_docx_by_media_type(client: AsyncClient):
    doc = Document()
    doc.add_paragraph("سویر ہو گئی سی")
    buf = io.BytesIO()
    doc.save(buf)

    files = {"file": ("story.bin", buf.getvalue(), DOCX_MEDIA_TYPE)}
    resp = await client.post("/api/corpus/upload", files=files)

    assert resp.status_code == 200
    assert "سویر ہو گئی سی" in resp.json()["text"]


@pytest.mark.asyncio
async def test_upload_empty_file_keeps_corpus(client: AsyncClient):
    await client.put("/api/corpus/", json={"text": "previous text"})

    files = {"file": ("blank.txt", b"   \n", "text/plain")}
    resp = await client.post("/api/corpus/upload", files=files)

    assert resp.status_code == 422
    assert resp.json()["error"] == "ExtractionError"
    assert (await client.get("/api/corpus/")).json()["text"] == "previous text"


@pytest.mark.asyncio
async def test_upload_over_size_limit_rejected(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 16)
    await client.put("/api/corpus/", json={"text": "previous text"})

    files = {"file": ("long.txt", "ا".encode("utf-8") * 64, "text/plain")}
    resp = await client.post("/api/corpus/upload", files=files)

    assert resp.status_code == 413
    assert (await client.get("/api/corpus/")).json()["text"] == "previous text"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_analysis_without_key(client: AsyncClient, fake_client):
    await client.put("/api/corpus/", json={"text": "ایتھے"})

    resp = await client.post("/api/analysis/")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Enter API Key."
    assert resp.json()["error"] == "InputError"
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_analysis_without_text(client: AsyncClient, fake_client):
    await _ready(client, text="   ")

    resp = await client.post("/api/analysis/")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Enter text."
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_analysis_success_view(client: AsyncClient):
    await _ready(client)

    resp = await client.post("/api/analysis/")

    assert resp.status_code == 200
    data = resp.json()
    assert data["error"] is None
    assert data["is_analyzing"] is False
    assert data["cards"]["total_sentences"] == 10
    assert data["cards"]["tense_switch_percentage"] == "50.0%"
    assert data["analysis"]["sentences"][0]["originalText"]
    assert data["chart"][0] == {"name": "Narrative HP", "count": 1}
    assert all(c["name"] != "None" for c in data["chart"])
    assert data["categories"][0] == "All"


@pytest.mark.asyncio
async def test_oracle_failure_keeps_previous_result(client: AsyncClient, fake_client):
    await _ready(client)
    await client.post("/api/analysis/")

    fake_client.error = OracleError("The model returned malformed JSON.")
    resp = await client.post("/api/analysis/")

    assert resp.status_code == 502
    assert resp.json()["detail"] == "The model returned malformed JSON."

    view = (await client.get("/api/analysis/")).json()
    assert view["error"] == "The model returned malformed JSON."
    assert len(view["analysis"]["sentences"]) == 10


@pytest.mark.asyncio
async def test_overlapping_analysis_rejected(client: AsyncClient, dashboard, fake_client):
    await _ready(client)
    dashboard.state.is_analyzing = True

    resp = await client.post("/api/analysis/")

    assert resp.status_code == 409
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_segment_filter(client: AsyncClient, dashboard):
    dashboard.state.analysis = make_analysis(
        categories=["Narrative HP", "None", "Quotative HP", "Narrative HP"]
    )

    resp = await client.get("/api/analysis/segments", params={"category": "Narrative HP"})
    data = resp.json()
    assert data["total"] == 2
    assert [s["position"] for s in data["segments"]] == [0, 3]

    resp = await client.get("/api/analysis/segments")
    assert resp.json()["total"] == 4


@pytest.mark.asyncio
async def test_chart_png(client: AsyncClient, dashboard):
    resp = await client.get("/api/analysis/chart.png")
    assert resp.status_code == 404

    dashboard.state.analysis = make_analysis()
    resp = await client.get("/api/analysis/chart.png")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.content.startswith(b"\x89PNG")


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_export_without_analysis(client: AsyncClient):
    resp = await client.post("/api/report/export")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_export_download(client: AsyncClient, dashboard):
    dashboard.state.analysis = make_analysis()

    resp = await client.post("/api/report/export")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == DOCX_MEDIA_TYPE
    assert (
        resp.headers["content-disposition"]
        == 'attachment; filename="Shahmukhi_Analysis_Report.docx"'
    )
    doc = Document(io.BytesIO(resp.content))
    assert len(doc.tables[0].rows) == 11
    assert len(doc.inline_shapes) == 1


@pytest.mark.asyncio
async def test_overlapping_export_rejected(client: AsyncClient, dashboard):
    dashboard.state.analysis = make_analysis()
    dashboard.state.is_exporting = True

    resp = await client.post("/api/report/export")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_export_in_flight_rejects_second_export(client: AsyncClient, dashboard, monkeypatch):
    dashboard.state.analysis = make_analysis()
    started, release = threading.Event(), threading.Event()
    real_build = dashboard.assembler.build

    def slow_build(*args, **kwargs):
        started.set()
        release.wait(5)
        return real_build(*args, **kwargs)

    monkeypatch.setattr(dashboard.assembler, "build", slow_build)

    first = asyncio.create_task(client.post("/api/report/export"))
    assert await asyncio.to_thread(started.wait, 5)

    second = await client.post("/api/report/export")
    assert second.status_code == 409

    release.set()
    resp = await first
    assert resp.status_code == 200
    assert dashboard.state.is_exporting is False


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_feedback_accepted(client: AsyncClient):
    resp = await client.post(
        "/api/feedback/",
        json={"feedback_type": "Issue", "description": "Quotative HP missed for آکھدا"},
    )
    assert resp.status_code == 202
    assert resp.json()["received"] is True


@pytest.mark.asyncio
async def test_feedback_requires_description(client: AsyncClient):
    resp = await client.post("/api/feedback/", json={"feedback_type": "Issue", "description": ""})
    assert resp.status_code == 422
