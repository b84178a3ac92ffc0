import logging

from app.core.prompts import build_classification_prompt
from app.services.llm import LLMClient

logger = logging.getLogger("uvicorn.error")


def is_health_related(llm_client: LLMClient, message: str) -> bool:
    """Ask the model whether ``message`` is about health, medicine or wellness.

    Only an exact ``true`` reply passes. Any failure counts as ``False`` so an
    unverified query is rejected rather than answered.
    """
    try:
        reply = llm_client.generate_text(build_classification_prompt(message), task_type="classification")
        return str(reply).lower().strip() == "true"
    except Exception as exc:
        logger.exception("health_classification_error detail=%s", str(exc)[:220])
        return False
