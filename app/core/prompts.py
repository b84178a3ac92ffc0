from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Union

if TYPE_CHECKING:
    from app.services.uploads import StagedImage


ROUTINE_QUESTIONS: tuple[str, ...] = (
    "What time do you usually wake up in the morning?",
    "What time do you usually go to bed at night?",
    "Do you have any specific health conditions or concerns?",
    "What is your current activity level? (sedentary, light, moderate, very active)",
    "What are your main health and wellness goals?",
    "Do you have any dietary restrictions or preferences?",
    "How much time can you dedicate to exercise daily?",
    "Do you have any specific stress management needs?",
    "What is your work schedule like?",
    "Do you have any specific sleep issues or requirements?",
)

CHAT_INSTRUCTIONS = """Please provide a response to this health-related query in the following format:
- Each main point should be a separate, complete sentence
- If there are related subpoints, include them in the same sentence using appropriate connecting words (and, additionally, moreover, including, such as, etc.)
- Do not use bullet points, markdown, or special formatting
- Each point should be on a new line
- Keep the points concise but informative"""

IMAGE_INSTRUCTIONS = """Please analyze this image and provide observations in the following format:
- Each main point should be a separate, complete sentence
- If there are related details, include them in the same sentence using appropriate connecting words
- Do not use bullet points, markdown, or special formatting
- Each point should be on a new line
- Keep the points concise but informative"""

ROUTINE_PERSONA = (
    "You are Dr. Early Pulse, a wellness expert. "
    "Based on the user's answers, generate a personalized list of daily tasks. "
    'Output **only** a JSON array of strings, e.g. ["Wake up at 6:30 AM","Drink water","..."]. '
    "Do not wrap it in any extra text or markdown."
)

CLASSIFICATION_TEMPLATE = (
    "Determine if this message is related to healthcare, medicine, wellness, or health. "
    "Only respond with 'true' or 'false': \"{message}\""
)


@dataclass(frozen=True)
class TextPart:
    text: str

    def to_wire(self) -> dict:
        return {"text": self.text}


@dataclass(frozen=True)
class InlineDataPart:
    mime_type: str
    data: str  # base64

    def to_wire(self) -> dict:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


Part = Union[TextPart, InlineDataPart]


def build_classification_prompt(message: str) -> list[Part]:
    return [TextPart(CLASSIFICATION_TEMPLATE.format(message=message))]


def build_chat_parts(message: Optional[str], image: Optional[StagedImage] = None) -> list[Part]:
    """Assemble the parts for a chat generation call.

    A question is wrapped in the one-point-per-line instructions; without one
    the image analysis instructions are used instead. The image, if any,
    always follows the text part. Callers guarantee at least one input.
    """
    parts: list[Part] = []
    if message:
        parts.append(TextPart(f"{CHAT_INSTRUCTIONS}\nQuery: {message}"))
    elif image is not None:
        parts.append(TextPart(IMAGE_INSTRUCTIONS))
    if image is not None:
        parts.append(InlineDataPart(mime_type=image.mime_type, data=image.read_base64()))
    return parts


def format_routine_answers(questions: Sequence[str], answers: Sequence[str]) -> str:
    return "\n\n".join(f"Q: {question}\nA: {answer}" for question, answer in zip(questions, answers))


def build_routine_prompt(questions: Sequence[str], answers: Sequence[str]) -> list[Part]:
    text = f"{ROUTINE_PERSONA}\n\nUser's answers:\n{format_routine_answers(questions, answers)}"
    return [TextPart(text)]
