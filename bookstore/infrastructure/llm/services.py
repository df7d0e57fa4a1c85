"""Enrichment engine implementations.

:class:`HeuristicEnrichmentService` is the deterministic keyword engine and
the fallback for the model-backed engines: when a remote call fails, or no
API key is configured, they log the cause and return the heuristic result
instead, so enrichment never blocks ingestion.
"""

import json
import logging
from typing import Any, Optional

import httpx
import openai

from bookstore.core.errors import EnrichmentError
from bookstore.domain.entities import Enrichment, Review
from bookstore.domain.repositories import IEnrichmentService
from bookstore.infrastructure.llm.prompts import BOOK_ENRICHMENT_PROMPT

logger = logging.getLogger(__name__)

TONE_KEYWORDS: dict[str, list[str]] = {
    "dark": ["dark", "grim", "bleak", "sinister", "ominous"],
    "uplifting": ["hope", "joy", "triumph", "inspiring", "uplifting"],
    "melancholic": ["sad", "melancholic", "sorrowful", "tragic", "loss"],
    "humorous": ["funny", "witty", "comedy", "humorous", "satire"],
    "intense": ["intense", "gripping", "powerful", "visceral", "raw"],
}

ATMOSPHERE_KEYWORDS: dict[str, list[str]] = {
    "atmospheric": ["atmospheric", "immersive", "vivid"],
    "dark": ["dark", "gothic", "noir"],
    "light": ["light", "cheerful", "bright"],
    "mysterious": ["mystery", "mysterious", "enigmatic"],
    "romantic": ["romantic", "love", "passion"],
}

SHOCK_KEYWORDS = [
    "shocking", "disturbing", "graphic", "controversial",
    "provocative", "unsettling", "dark", "twisted",
]

THEMES = [
    "love", "death", "war", "family", "identity", "power",
    "betrayal", "revenge", "redemption", "coming-of-age",
    "mystery", "adventure", "romance", "tragedy",
]

PACES = {"slow_burn", "moderate", "fast_paced"}
BASE_SHOCK = 5
SUMMARY_LENGTH = 100
MAX_PROMPT_REVIEWS = 5


def _clamp_shock(score: int) -> int:
    return min(max(score, 1), 10)


# ---------------------------------------------------------------------------
# Heuristic (default / fallback)
# ---------------------------------------------------------------------------
class HeuristicEnrichmentService(IEnrichmentService):
    """Keyword matching over the description.  Same text, same tags."""

    async def enrich(
        self,
        title: str,
        author: str,
        description: Optional[str] = None,
        reviews: Optional[list[Review]] = None,
    ) -> Enrichment:
        return self.analyze(description)

    def analyze(self, description: Optional[str]) -> Enrichment:
        text = (description or "").lower()
        return Enrichment(
            emotional_tone=self.infer_emotional_tone(text),
            shock_factor=self.calculate_shock_factor(text),
            pace=self.infer_pace(text),
            atmosphere=self.infer_atmosphere(text),
            vibe_keywords=(description or "")[:SUMMARY_LENGTH].strip(),
            themes=[theme for theme in THEMES if theme in text],
            similar_to=[],
        )

    @staticmethod
    def _buckets(text: str, table: dict[str, list[str]]) -> list[str]:
        return [label for label, words in table.items() if any(w in text for w in words)]

    def infer_emotional_tone(self, text: str) -> list[str]:
        return self._buckets(text, TONE_KEYWORDS) or ["neutral"]

    def infer_atmosphere(self, text: str) -> list[str]:
        return self._buckets(text, ATMOSPHERE_KEYWORDS)

    @staticmethod
    def calculate_shock_factor(text: str) -> int:
        matches = [kw for kw in SHOCK_KEYWORDS if kw in text]
        return _clamp_shock(BASE_SHOCK + len(matches))

    @staticmethod
    def infer_pace(text: str) -> str:
        if "slow" in text or "meditative" in text:
            return "slow_burn"
        if "fast" in text or "thriller" in text or "action" in text:
            return "fast_paced"
        return "moderate"


# ---------------------------------------------------------------------------
# Shared helpers for the model-backed engines
# ---------------------------------------------------------------------------
def render_enrichment_messages(
    title: str,
    author: str,
    description: Optional[str],
    reviews: Optional[list[Review]],
) -> list[dict[str, str]]:
    review_text = "\n\n".join(r.text for r in (reviews or [])[:MAX_PROMPT_REVIEWS])
    return BOOK_ENRICHMENT_PROMPT.render(
        title=title,
        author=author,
        description=description or "N/A",
        reviews=review_text,
    )


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value if v]
    return []


def parse_enrichment_payload(content: str) -> Enrichment:
    """Turn a model reply into an :class:`Enrichment`.

    Tolerates surrounding prose or markdown fences around the JSON object.
    Raises :class:`EnrichmentError` when no JSON object can be read.
    """
    start, end = content.find("{"), content.rfind("}")
    if start == -1 or end <= start:
        raise EnrichmentError("model reply contains no JSON object")
    try:
        data = json.loads(content[start:end + 1])
    except json.JSONDecodeError as exc:
        raise EnrichmentError(f"model reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise EnrichmentError("model reply is not a JSON object")

    try:
        shock: Optional[int] = _clamp_shock(int(round(float(data.get("shock_factor")))))
    except (TypeError, ValueError, OverflowError):
        shock = None
    pace = data.get("pace")

    return Enrichment(
        emotional_tone=_str_list(data.get("emotional_tone")),
        shock_factor=shock,
        pace=pace if pace in PACES else "moderate",
        atmosphere=_str_list(data.get("atmosphere")),
        vibe_keywords=str(data.get("vibe_keywords") or ""),
        themes=_str_list(data.get("themes")),
        similar_to=_str_list(data.get("similar_to")),
    )


# ---------------------------------------------------------------------------
# OpenAI (remote API)
# ---------------------------------------------------------------------------
class OpenAIEnrichmentService(IEnrichmentService):
    """OpenAI-backed enrichment.

    Without an API key every call goes straight to the heuristic engine.
    *client* may be injected (tests); otherwise one is built from the key.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        client: Optional[Any] = None,
    ):
        self.model = model
        self._client = client
        if self._client is None and api_key:
            self._client = openai.AsyncOpenAI(api_key=api_key)
        self._fallback = HeuristicEnrichmentService()

    async def _chat(self, messages: list[dict[str, str]]) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            temperature=0.7,
            max_tokens=500,
        )
        return response.choices[0].message.content or ""

    async def enrich(
        self,
        title: str,
        author: str,
        description: Optional[str] = None,
        reviews: Optional[list[Review]] = None,
    ) -> Enrichment:
        if self._client is None:
            logger.info("OpenAI API key not configured; using heuristic enrichment")
            return await self._fallback.enrich(title, author, description, reviews)

        messages = render_enrichment_messages(title, author, description, reviews)
        try:
            content = await self._chat(messages)
            return parse_enrichment_payload(content)
        except (openai.OpenAIError, EnrichmentError) as exc:
            logger.warning("OpenAI enrichment failed (%s); falling back to heuristic", exc)
            return await self._fallback.enrich(title, author, description, reviews)


# ---------------------------------------------------------------------------
# Llama 3 (local / Ollama)
# ---------------------------------------------------------------------------
class LlamaEnrichmentService(IEnrichmentService):
    """Local model enrichment through the `Ollama <https://ollama.com>`_ API.

    Constructor args:
        http_client: shared ``httpx.AsyncClient``.
        base_url:    Ollama server URL (default ``http://localhost:11434``).
        model:       Model tag pulled into Ollama (default ``llama3``).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "http://localhost:11434",
        model: str = "llama3",
    ):
        self._http = http_client
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._fallback = HeuristicEnrichmentService()

    async def _chat(self, messages: list[dict[str, str]]) -> str:
        """Call ``POST /api/chat`` (non-streaming, JSON mode)."""
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.4},
        }
        resp = await self._http.post(f"{self.base_url}/api/chat", json=payload)
        resp.raise_for_status()
        body = resp.json()
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, dict) or not isinstance(message.get("content", ""), str):
            raise EnrichmentError("unexpected Ollama chat response")
        return message.get("content", "")

    async def enrich(
        self,
        title: str,
        author: str,
        description: Optional[str] = None,
        reviews: Optional[list[Review]] = None,
    ) -> Enrichment:
        messages = render_enrichment_messages(title, author, description, reviews)
        logger.info("LlamaEnrichment: requesting tags from %s (model=%s)", self.base_url, self.model)
        try:
            content = await self._chat(messages)
            return parse_enrichment_payload(content)
        except (httpx.HTTPError, ValueError, EnrichmentError) as exc:
            logger.warning("Ollama enrichment failed (%s); falling back to heuristic", exc)
            return await self._fallback.enrich(title, author, description, reviews)
