"""
Corpus text endpoints.

GET    /        : current corpus text.
PUT    /        : replace the corpus text (pasted input).
DELETE /        : clear the input.
POST   /upload  : extract text from a PDF, DOCX or plain-text file.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from hp_engine.config import settings
from hp_engine.dependencies.dashboard import get_dashboard
from hp_engine.models.schemas import CorpusResponse, CorpusUpdateRequest
from hp_engine.services.dashboard import Dashboard

logger = logging.getLogger(__name__)

router = APIRouter()


def _corpus_response(dashboard: Dashboard) -> CorpusResponse:
    state = dashboard.state
    return CorpusResponse(
        text=state.corpus_text,
        characters=len(state.corpus_text),
        source=state.corpus_source,
    )


@router.get("/", response_model=CorpusResponse)
async def get_corpus(dashboard: Dashboard = Depends(get_dashboard)) -> CorpusResponse:
    return _corpus_response(dashboard)


@router.put("/", response_model=CorpusResponse)
async def set_corpus(
    body: CorpusUpdateRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> CorpusResponse:
    dashboard.set_corpus_text(body.text)
    return _corpus_response(dashboard)


@router.delete("/", response_model=CorpusResponse)
async def clear_corpus(dashboard: Dashboard = Depends(get_dashboard)) -> CorpusResponse:
    dashboard.clear_input()
    return _corpus_response(dashboard)


@router.post("/upload", response_model=CorpusResponse)
async def upload_corpus(
    file: UploadFile = File(...),
    dashboard: Dashboard = Depends(get_dashboard),
) -> CorpusResponse:
    """
    Upload a corpus file and make its text the current input.

    - The declared media type picks the extractor (PDF, DOCX, else text)
    - Max file size: 20 MB (configurable via MAX_FILE_SIZE)
    - On failure the previous corpus text is kept
    """
    data = bytearray()
    while True:
        chunk = await file.read(1024 * 1024)   # 1 MB slices
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > settings.MAX_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=(
                    f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB "
                    "size limit."
                ),
            )

    media_type = file.content_type or "text/plain"
    await dashboard.load_file(bytes(data), media_type, filename=file.filename)
    logger.info(
        f"Loaded {file.filename!r} ({media_type}, {len(data):,} bytes) as corpus"
    )
    return _corpus_response(dashboard)
