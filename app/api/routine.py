import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.access import require_access
from app.db.session import get_db
from app.services.llm import LLMClient, get_llm_client
from app.services.routine import RoutineGenerator, RoutineRecord

router = APIRouter(prefix="/api/v1/routine", tags=["routine"], dependencies=[Depends(require_access)])
logger = logging.getLogger("uvicorn.error")


class RoutineLookupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")


class RoutineGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    # Shape is checked against the question set by the generator.
    answers: Optional[Any] = None


class QuestionsData(BaseModel):
    questions: list[str]


class QuestionsResponse(BaseModel):
    success: bool = True
    data: QuestionsData


class RoutineData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    routine: list[str]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class RoutineResponse(BaseModel):
    success: bool = True
    data: RoutineData


def _to_response(record: RoutineRecord) -> RoutineResponse:
    return RoutineResponse(
        data=RoutineData(routine=record.routine, created_at=record.created_at, updated_at=record.updated_at)
    )


@router.get("/questions", response_model=QuestionsResponse)
def list_questions() -> QuestionsResponse:
    return QuestionsResponse(data=QuestionsData(questions=RoutineGenerator.questions()))


@router.post("/current", response_model=RoutineResponse)
def current_routine(
    payload: Optional[RoutineLookupRequest] = None,
    db: Session = Depends(get_db),
) -> RoutineResponse:
    user_id = payload.user_id if payload else None
    logger.info("routine_current_requested user_id=%s", user_id)
    return _to_response(RoutineGenerator(db).current(user_id))


@router.post("/generate", response_model=RoutineResponse)
def generate_routine(
    payload: Optional[RoutineGenerateRequest] = None,
    db: Session = Depends(get_db),
    llm_client: LLMClient = Depends(get_llm_client),
) -> RoutineResponse:
    user_id = payload.user_id if payload else None
    answers = payload.answers if payload else None
    logger.info("routine_generate_requested user_id=%s", user_id)
    return _to_response(RoutineGenerator(db, llm_client).generate(user_id, answers))
