"""
Gemini client for Historical Present annotation.

Sends one ``generateContent`` request carrying a fixed system instruction,
the corpus text, and a strict JSON response schema, then validates the
returned JSON into an AnalysisResponse.  The model's output is never
repaired and a failed call is never retried; any problem is an OracleError.

Public API
----------
GeminiAnalysisClient.analyze(corpus_text, credential) -> AnalysisResponse
build_request_payload(corpus_text, temperature)         -> Dict
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from hp_engine.config import settings
from hp_engine.exceptions import AuthError, OracleError
from hp_engine.models.analysis import AnalysisResponse, HPCategory, Tense

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt and schema: this request shape is the contract with the model
# ---------------------------------------------------------------------------

# Sent byte-for-byte, including the trailing space after "Expert."
SYSTEM_INSTRUCTION = """
You are a Senior Computational Linguist and Punjabi Discourse Expert. 
Task: Deep Narrative Tense Analysis on Shahmukhi Punjabi text.

Linguistic Protocol:
1. Contextual Identification: Detect Historical Present (HP) even when auxiliaries (hai/si) are deleted.
2. Aspectual Logic: Focus on the imperfective suffix (-dā / دا / دے / دی).
3. Logical Narrative Sentences: Group clauses into "Logical Narrative Sentences"—segments that represent a complete action or thought in oral tradition.
4. Categorization (EXCLUDE PEAK MARKING & DISCOURSE FUNCTION):
   - Narrative HP: Sequential plot movement.
   - Quotative HP: Speech attribution.
   - Episodic HP: Setting a new scene or boundary.
   - Visualizing HP: Sensory-rich descriptions for immediacy.
5. Qualitative Summary: Provide 2 paragraphs of professional linguistic analysis.
   - LANGUAGE: The descriptive analysis MUST be written in ENGLISH.
   - CITATIONS: Use SHAHMUKHI SCRIPT (Arabic/Urdu characters) for all Punjabi words or examples mentioned (e.g., 'دا', 'اے', 'سی').
   - DO NOT use Roman script or transliteration for Punjabi words.
   - DO NOT use phrases like "Linguistic Style", "Style Profile", "Peak Marking", or "Discourse Function".
   - Ensure the qualitative narrative makes sense and flows logically; use professional, scholarly language.

Output must be valid JSON matching the schema. DO NOT include "discourseFunction".
"""

USER_PROMPT = (
    "Perform a coherent linguistic analysis for this Shahmukhi Punjabi text: {text}"
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "OBJECT",
            "properties": {
                "totalSentences": {"type": "INTEGER"},
                "hpCount": {"type": "INTEGER"},
                "tenseSwitchRatio": {"type": "NUMBER"},
            },
            "required": ["totalSentences", "hpCount", "tenseSwitchRatio"],
        },
        "qualitativeAnalysis": {"type": "STRING"},
        "sentences": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "originalText": {"type": "STRING"},
                    "inferredTense": {
                        "type": "STRING",
                        "enum": [t.value for t in Tense],
                    },
                    "omittedElements": {"type": "STRING"},
                    "hpCategory": {
                        "type": "STRING",
                        "enum": [c.value for c in HPCategory],
                    },
                    "reasoning": {"type": "STRING"},
                    "contextualMetadata": {"type": "STRING"},
                    "position": {"type": "INTEGER"},
                },
                "required": [
                    "originalText",
                    "inferredTense",
                    "omittedElements",
                    "hpCategory",
                    "reasoning",
                    "position",
                ],
            },
        },
    },
    "required": ["summary", "qualitativeAnalysis", "sentences"],
}


def build_request_payload(
    corpus_text: str,
    temperature: Optional[float] = None,
) -> Dict[str, Any]:
    """Return the generateContent body for *corpus_text*."""
    generation_config: Dict[str, Any] = {
        "responseMimeType": "application/json",
        "responseSchema": RESPONSE_SCHEMA,
    }
    if temperature is not None:
        generation_config["temperature"] = temperature

    return {
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "contents": [
            {"role": "user", "parts": [{"text": USER_PROMPT.format(text=corpus_text)}]}
        ],
        "generationConfig": generation_config,
    }


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class GeminiAnalysisClient:
    """
    Single-shot analysis client for the Gemini REST API.

    *transport* lets tests plug in ``httpx.MockTransport``; production code
    leaves it as None.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.api_version = settings.GEMINI_API_VERSION
        self.model = model or settings.GEMINI_MODEL
        self.timeout = httpx.Timeout(
            settings.GEMINI_TIMEOUT, connect=settings.GEMINI_CONNECT_TIMEOUT
        )
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.api_version}/models/{self.model}:generateContent"

    async def analyze(self, corpus_text: str, credential: str) -> AnalysisResponse:
        """
        Annotate *corpus_text* and return the validated result.

        Raises:
            AuthError:   *credential* is absent or empty.
            OracleError: transport failure, rejected key, blocked prompt,
                         unparseable JSON or a response that breaks the schema.
        """
        if not credential:
            raise AuthError()

        payload = build_request_payload(corpus_text, settings.GEMINI_TEMPERATURE)
        body = await self._post(payload, credential)
        text = self._response_text(body)

        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error("analyze: response is not valid JSON. Preview: %s", text[:400])
            raise OracleError("The model returned malformed JSON.") from exc

        try:
            result = AnalysisResponse.model_validate(raw)
        except ValidationError as exc:
            logger.error("analyze: response does not match schema: %s", exc)
            raise OracleError(
                f"The model response did not match the expected schema "
                f"({exc.error_count()} problem(s))."
            ) from exc

        logger.info(
            "analyze: %d segments, %d HP instances",
            len(result.sentences),
            result.summary.hp_count,
        )
        return result

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, payload: Dict[str, Any], credential: str) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "x-goog-api-key": credential}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("analyze: transport error calling %s: %s", self.model, exc)
            raise OracleError(f"Could not reach the analysis service: {exc}") from exc

        if resp.status_code != 200:
            reason = _error_reason(resp)
            logger.error(
                "analyze: Gemini returned HTTP %d: %s", resp.status_code, reason
            )
            raise OracleError(reason or f"Analysis failed (HTTP {resp.status_code}).")

        try:
            body = resp.json()
        except ValueError as exc:
            raise OracleError("The analysis service returned a non-JSON body.") from exc
        if not isinstance(body, dict):
            raise OracleError("The analysis service returned an unexpected body.")
        return body

    @staticmethod
    def _response_text(body: Dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        feedback = body.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise OracleError(f"Request blocked by the model: {feedback['blockReason']}")

        candidates = body.get("candidates") or []
        if not candidates:
            raise OracleError("The model returned no candidates.")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))
        if not text.strip():
            finish = candidates[0].get("finishReason", "unknown")
            raise OracleError(f"The model returned an empty response (finishReason={finish}).")
        return text


def _error_reason(resp: httpx.Response) -> str:
    """Pull ``error.message`` out of a Google API error body, if any."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    error = body.get("error") if isinstance(body, dict) else None
    if not error:
        return ""
    if isinstance(error, dict):
        return str(error.get("message", ""))
    return str(error)
