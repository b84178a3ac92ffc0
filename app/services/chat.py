import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.core.errors import GenerationFailure, MissingInput, OutOfDomain
from app.core.normalizer import normalize_points
from app.core.prompts import Part, build_chat_parts
from app.services.classifier import is_health_related
from app.services.llm import LLMClient
from app.services.uploads import StagedImage

logger = logging.getLogger("uvicorn.error")


@dataclass
class ChatResult:
    points: list[str]
    timestamp: datetime


class ChatOrchestrator:
    """Classify, prompt, generate and normalize one chat request."""

    def __init__(self, llm_client: LLMClient) -> None:
        self.llm_client = llm_client

    def answer(self, message: Optional[str]) -> ChatResult:
        text = (message or "").strip()
        if not text:
            raise MissingInput("Message is required")
        self._require_health_topic(text)
        return self._generate(build_chat_parts(text))

    def answer_with_image(self, message: Optional[str], image: Optional[StagedImage]) -> ChatResult:
        text = (message or "").strip()
        if not text and image is None:
            raise MissingInput("Please provide either text or an image.")
        # Image-only requests are not classified.
        if text:
            self._require_health_topic(text)
        return self._generate(build_chat_parts(text or None, image))

    def _require_health_topic(self, text: str) -> None:
        if not is_health_related(self.llm_client, text):
            raise OutOfDomain()

    def _generate(self, parts: list[Part]) -> ChatResult:
        try:
            raw = self.llm_client.generate_text(parts, task_type="reasoning")
        except Exception as exc:
            logger.exception("chat_generation_error detail=%s", str(exc)[:220])
            raise GenerationFailure("Failed to get response from Gemini API", details=str(exc)[:500]) from exc
        return ChatResult(points=normalize_points(raw), timestamp=datetime.now(timezone.utc))
