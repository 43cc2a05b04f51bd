"""
Dashboard state and the command handlers behind each user action.

One ``Dashboard`` owns the credential, the corpus text, the last analysis
result, the in-flight flags and the last error banner.  Routers receive it
through a FastAPI dependency; services never reach it through globals.

Commands
--------
save_credential(key)               persist and keep a new API key
set_corpus_text(text) / clear_input()
load_file(data, media_type)        replace corpus text from an upload
submit_analysis()                  run the remote analysis
export_report()                    build the .docx for the last result
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import date
from typing import Dict, List, Optional, Protocol

from hp_engine.exceptions import (
    ExportError,
    ExtractionError,
    HPEngineError,
    InputError,
    OracleError,
)
from hp_engine.models.analysis import AnalysisResponse, SegmentAnnotation
from hp_engine.services.charts import ChartRasterizer, category_histogram
from hp_engine.services.credential_store import CredentialStore
from hp_engine.services.document_extractor import DocumentExtractor
from hp_engine.services.report_builder import ReportAssembler

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class AnalysisClient(Protocol):
    async def analyze(self, corpus_text: str, credential: str) -> AnalysisResponse:
        ...


@dataclasses.dataclass
class DashboardState:
    credential: str = ""
    corpus_text: str = ""
    corpus_source: Optional[str] = None
    analysis: Optional[AnalysisResponse] = None
    is_analyzing: bool = False
    is_exporting: bool = False
    last_error: Optional[str] = None


class Dashboard:
    """Command handlers over a single DashboardState."""

    def __init__(
        self,
        client: AnalysisClient,
        store: CredentialStore,
        extractor: Optional[DocumentExtractor] = None,
        rasterizer: Optional[ChartRasterizer] = None,
        assembler: Optional[ReportAssembler] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.extractor = extractor or DocumentExtractor()
        self.rasterizer = rasterizer or ChartRasterizer()
        self.assembler = assembler or ReportAssembler()
        self.state = DashboardState()

    # ------------------------------------------------------------------
    # Credential
    # ------------------------------------------------------------------

    async def load_credential(self) -> bool:
        """Read the stored key into memory.  Returns True if one was found."""
        self.state.credential = await self.store.load()
        return bool(self.state.credential)

    async def save_credential(self, credential: str) -> None:
        credential = credential.strip()
        if not credential:
            raise InputError("Enter API Key.")
        self.state.credential = credential
        await self.store.save(credential)

    # ------------------------------------------------------------------
    # Corpus input
    # ------------------------------------------------------------------

    def set_corpus_text(self, text: str, source: Optional[str] = None) -> None:
        self.state.corpus_text = text
        self.state.corpus_source = source

    def clear_input(self) -> None:
        """Empty the corpus text; the displayed result is kept."""
        self.set_corpus_text("")

    async def load_file(
        self,
        data: bytes,
        media_type: str,
        filename: Optional[str] = None,
    ) -> str:
        """
        Extract text from an uploaded file and make it the corpus.

        On ExtractionError the previous corpus text is left untouched.
        """
        try:
            text = await self.extractor.extract(data, media_type)
        except ExtractionError:
            logger.warning("Extraction failed for %r; corpus unchanged", filename)
            raise
        self.set_corpus_text(text, source=filename)
        return text

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def submit_analysis(self) -> AnalysisResponse:
        """
        Analyse the current corpus with the stored credential.

        A success replaces the previous result wholesale.  A failure sets the
        error banner and leaves the previous result in place.
        """
        state = self.state
        if not state.credential:
            state.last_error = "Enter API Key."
            raise InputError(state.last_error)
        if not state.corpus_text.strip():
            state.last_error = "Enter text."
            raise InputError(state.last_error)

        state.is_analyzing = True
        state.last_error = None
        try:
            result = await self.client.analyze(state.corpus_text, state.credential)
        except HPEngineError as exc:
            state.last_error = exc.message
            raise
        except Exception as exc:
            logger.error("Unexpected analysis failure: %s", exc, exc_info=True)
            state.last_error = str(exc) or OracleError.default_message
            raise OracleError(state.last_error) from exc
        finally:
            state.is_analyzing = False

        state.analysis = result
        return result

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export_report(self, report_date: Optional[date] = None) -> bytes:
        """Build the Word report for the current result."""
        state = self.state
        if state.analysis is None:
            raise InputError("Run an analysis before exporting.")

        analysis = state.analysis
        state.is_exporting = True
        try:
            # Rendering and serialization block, so they run off the event loop
            chart = await asyncio.to_thread(
                self.rasterizer.render_and_capture, analysis.sentences
            )
            return await asyncio.to_thread(
                self.assembler.build, analysis, chart, report_date=report_date
            )
        except ExportError:
            raise
        except Exception as exc:
            logger.error("Unexpected export failure: %s", exc, exc_info=True)
            raise ExportError() from exc
        finally:
            state.is_exporting = False

    # ------------------------------------------------------------------
    # View helpers
    # ------------------------------------------------------------------

    def histogram(self) -> Dict[str, int]:
        if self.state.analysis is None:
            return {}
        return category_histogram(self.state.analysis.sentences)

    def chart_png(self) -> Optional[bytes]:
        if self.state.analysis is None:
            return None
        return self.rasterizer.render_and_capture(self.state.analysis.sentences)

    def category_options(self) -> List[str]:
        if self.state.analysis is None:
            return []
        categories = {s.hp_category.value for s in self.state.analysis.sentences}
        return sorted([ALL_CATEGORIES, *categories])

    def filtered_segments(self, category: Optional[str] = None) -> List[SegmentAnnotation]:
        if self.state.analysis is None:
            return []
        segments = self.state.analysis.sentences
        if not category or category == ALL_CATEGORIES:
            return list(segments)
        return [s for s in segments if s.hp_category.value == category]
