"""Prompt text for the LLM-backed enrichment engines.

Both the OpenAI and the Ollama engine render the same template, so the
wording and the expected JSON shape are defined once here.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PromptTemplate:
    """System + user prompt pair with ``str.format`` placeholders.

    >>> BOOK_ENRICHMENT_PROMPT.render(title="Dune", author="Frank Herbert",
    ...                               description="", reviews="")[0]["role"]
    'system'
    """

    name: str
    system: str
    user: str
    description: str = ""
    version: str = "1.0"
    tags: list[str] = field(default_factory=list)

    def render(self, **values: Any) -> list[dict[str, str]]:
        """Fill both halves and return them as chat messages."""
        return [
            {"role": "system", "content": self.system.format(**values)},
            {"role": "user", "content": self.user.format(**values)},
        ]


BOOK_ENRICHMENT_PROMPT = PromptTemplate(
    name="book_enrichment",
    description="Derive vibe tags (tone, pace, atmosphere, themes) for a secondhand listing.",
    version="1.0",
    tags=["ingestion", "enrichment"],
    system="You are a literary analyst. Respond only with valid JSON.",
    user=(
        "Analyze this book and provide enrichment data in JSON format:\n\n"
        "Title: {title}\n"
        "Author: {author}\n"
        "Description: {description}\n\n"
        "Sample Reviews:\n{reviews}\n\n"
        "Provide the following in JSON format:\n"
        "{{\n"
        '  "emotional_tone": ["adjective1", "adjective2"],\n'
        '  "shock_factor": 1-10,\n'
        '  "pace": "slow_burn" | "moderate" | "fast_paced",\n'
        '  "atmosphere": ["adjective1", "adjective2"],\n'
        '  "vibe_keywords": "short descriptive phrase",\n'
        '  "themes": ["theme1", "theme2"],\n'
        '  "similar_to": ["author1", "author2"]\n'
        "}}"
    ),
)
