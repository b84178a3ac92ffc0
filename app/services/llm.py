import os
from typing import Optional, Protocol, Sequence

import httpx

from app.core.prompts import Part

GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
DEFAULT_REASONING_MODEL = os.getenv("DEFAULT_REASONING_MODEL", "").strip() or "gemini-1.5-flash"
DEFAULT_UTILITY_MODEL = os.getenv("DEFAULT_UTILITY_MODEL", "").strip() or DEFAULT_REASONING_MODEL

LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
LLM_CONNECT_TIMEOUT_SECONDS = float(os.getenv("LLM_CONNECT_TIMEOUT_SECONDS", "10"))
LLM_WRITE_TIMEOUT_SECONDS = float(os.getenv("LLM_WRITE_TIMEOUT_SECONDS", "30"))
LLM_POOL_TIMEOUT_SECONDS = float(os.getenv("LLM_POOL_TIMEOUT_SECONDS", "60"))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.4"))
LLM_MAX_TOKENS_UTILITY = int(os.getenv("LLM_MAX_TOKENS_UTILITY", "320"))
LLM_MAX_TOKENS_REASONING = int(os.getenv("LLM_MAX_TOKENS_REASONING", "2048"))

UTILITY_TASK_TYPES = {
    "utility",
    "routing",
    "classification",
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def _http_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=LLM_CONNECT_TIMEOUT_SECONDS,
        read=LLM_TIMEOUT_SECONDS,
        write=LLM_WRITE_TIMEOUT_SECONDS,
        pool=LLM_POOL_TIMEOUT_SECONDS,
    )


def _max_output_tokens(task_type: str) -> int:
    normalized = (task_type or "").strip().lower()
    if normalized in UTILITY_TASK_TYPES:
        return LLM_MAX_TOKENS_UTILITY
    return LLM_MAX_TOKENS_REASONING


def select_model_for_task(reasoning_model: str, utility_model: str, task_type: str) -> str:
    normalized_task = (task_type or "").strip().lower()
    if normalized_task in UTILITY_TASK_TYPES:
        return utility_model
    return reasoning_model


class LLMRequestError(RuntimeError):
    def __init__(self, provider: str, model: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code


def extract_gemini_text(data: dict) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise ValueError(f"Gemini returned no candidates (blockReason={block_reason or 'unknown'})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))
    if not text.strip():
        finish_reason = candidates[0].get("finishReason") or "unknown"
        raise ValueError(f"Gemini returned empty content (finishReason={finish_reason})")
    return text


class LLMClient(Protocol):
    def generate_text(self, parts: Sequence[Part], task_type: str = "reasoning") -> str:
        ...


class GeminiClient:
    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        reasoning_model: str = DEFAULT_REASONING_MODEL,
        utility_model: str = DEFAULT_UTILITY_MODEL,
        base_url: str = GEMINI_API_BASE,
    ) -> None:
        self.api_key = api_key
        self.reasoning_model = reasoning_model
        self.utility_model = utility_model
        self.base_url = base_url.rstrip("/")

    def _payload(self, parts: Sequence[Part], task_type: str) -> dict:
        return {
            "contents": [{"role": "user", "parts": [part.to_wire() for part in parts]}],
            "safetySettings": SAFETY_SETTINGS,
            "generationConfig": {
                "temperature": LLM_TEMPERATURE,
                "maxOutputTokens": _max_output_tokens(task_type),
            },
        }

    def generate_text(self, parts: Sequence[Part], task_type: str = "reasoning") -> str:
        model = select_model_for_task(self.reasoning_model, self.utility_model, task_type)
        if not self.api_key:
            raise LLMRequestError(provider=self.provider, model=model, message="GEMINI_API_KEY is not configured")
        url = f"{self.base_url}/models/{model}:generateContent?key={self.api_key}"
        try:
            response = httpx.post(
                url,
                headers={"Content-Type": "application/json"},
                json=self._payload(parts, task_type),
                timeout=_http_timeout(),
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise LLMRequestError(
                provider=self.provider,
                model=model,
                message="Gemini request timed out while waiting for response.",
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code if exc.response is not None else None
            detail = ""
            if exc.response is not None:
                detail = (exc.response.text or "").strip()[:220]
            raise LLMRequestError(
                provider=self.provider,
                model=model,
                status_code=status,
                message=f"Gemini request failed (status={status}): {detail or 'no response body'}",
            ) from exc
        except httpx.HTTPError as exc:
            raise LLMRequestError(
                provider=self.provider,
                model=model,
                message=f"Gemini request failed: {str(exc)[:220]}",
            ) from exc
        try:
            return extract_gemini_text(response.json())
        except ValueError as exc:
            raise LLMRequestError(provider=self.provider, model=model, message=str(exc)[:220]) from exc


def get_llm_client() -> LLMClient:
    return GeminiClient(api_key=os.getenv("GEMINI_API_KEY", "").strip())
