from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from app.core.access import require_access
from app.services.chat import ChatOrchestrator, ChatResult
from app.services.llm import LLMClient, get_llm_client
from app.services.uploads import staged_image

router = APIRouter(prefix="/api", tags=["chat"], dependencies=[Depends(require_access)])


class ChatRequest(BaseModel):
    message: Optional[str] = None


class ChatData(BaseModel):
    points: list[str]
    timestamp: datetime


class ChatResponse(BaseModel):
    success: bool = True
    data: ChatData


def _to_response(result: ChatResult) -> ChatResponse:
    return ChatResponse(data=ChatData(points=result.points, timestamp=result.timestamp))


@router.post("/chat", response_model=ChatResponse)
def chat(
    payload: Optional[ChatRequest] = None,
    llm_client: LLMClient = Depends(get_llm_client),
) -> ChatResponse:
    result = ChatOrchestrator(llm_client).answer(payload.message if payload else None)
    return _to_response(result)


@router.post("/chat-with-image", response_model=ChatResponse)
def chat_with_image(
    image: Optional[UploadFile] = File(default=None),
    message: Optional[str] = Form(default=None),
    llm_client: LLMClient = Depends(get_llm_client),
) -> ChatResponse:
    with staged_image(image) as staged:
        result = ChatOrchestrator(llm_client).answer_with_image(message, staged)
    return _to_response(result)
