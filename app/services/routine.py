import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    AnswerCountMismatch,
    GenerationFailure,
    InternalError,
    MalformedRoutineOutput,
    MissingUserId,
    NotFound,
)
from app.core.prompts import ROUTINE_QUESTIONS, build_routine_prompt
from app.db.models import Routine
from app.services.llm import LLMClient

logger = logging.getLogger("uvicorn.error")

_LEADING_FENCE_RE = re.compile(r"^```[\w+-]*\s*")
_TRAILING_FENCE_RE = re.compile(r"\s*```$")


@dataclass
class RoutineRecord:
    routine: list[str]
    created_at: datetime
    updated_at: datetime


def strip_code_fence(raw: str) -> str:
    """Drop a markdown fence wrapped around the whole reply, if there is one."""
    text = (raw or "").strip()
    if text.startswith("```"):
        text = _LEADING_FENCE_RE.sub("", text, count=1)
        text = _TRAILING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def parse_routine_tasks(raw: str) -> list[str]:
    text = strip_code_fence(raw)
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise MalformedRoutineOutput(
            "Failed to generate routine", details="Invalid response format from AI model"
        ) from exc
    if not isinstance(parsed, list) or not all(isinstance(task, str) for task in parsed):
        raise MalformedRoutineOutput("Failed to generate routine", details="Invalid response format from AI model")
    return parsed


def validate_answers(answers: Any) -> list[str]:
    if (
        not isinstance(answers, list)
        or len(answers) != len(ROUTINE_QUESTIONS)
        or not all(isinstance(answer, str) for answer in answers)
    ):
        raise AnswerCountMismatch("Please provide answers for all questions")
    return answers


def _require_user_id(user_id: Optional[str]) -> str:
    if not (user_id or "").strip():
        raise MissingUserId("User ID is required")
    return user_id


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: Routine) -> RoutineRecord:
    return RoutineRecord(
        routine=json.loads(row.routine_json),
        created_at=_to_utc(row.created_at),
        updated_at=_to_utc(row.updated_at),
    )


def _next_timestamp(previous: Optional[datetime]) -> datetime:
    # Naive UTC to match the column; never equal to the previous write.
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def upsert_routine(db: Session, user_id: str, tasks: list[str]) -> Routine:
    """Replace the stored routine for ``user_id``, creating the row on first write."""
    routine_json = json.dumps(tasks, ensure_ascii=False)
    row = db.query(Routine).filter(Routine.user_id == user_id).first()
    if not row:
        now = _next_timestamp(None)
        row = Routine(user_id=user_id, routine_json=routine_json, created_at=now, updated_at=now)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request created the row first; fall through to replace it.
            db.rollback()
            row = db.query(Routine).filter(Routine.user_id == user_id).one()
        else:
            db.refresh(row)
            return row
    row.routine_json = routine_json
    row.updated_at = _next_timestamp(row.updated_at)
    db.commit()
    db.refresh(row)
    return row


class RoutineGenerator:
    def __init__(self, db: Session, llm_client: Optional[LLMClient] = None) -> None:
        self.db = db
        self.llm_client = llm_client

    @staticmethod
    def questions() -> list[str]:
        return list(ROUTINE_QUESTIONS)

    def current(self, user_id: Optional[str]) -> RoutineRecord:
        user_id = _require_user_id(user_id)
        try:
            row = (
                self.db.query(Routine)
                .filter(Routine.user_id == user_id)
                .order_by(Routine.updated_at.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            logger.exception("routine_fetch_error user_id=%s", user_id)
            raise InternalError("Failed to fetch routine", details=str(exc)[:220]) from exc
        if not row:
            raise NotFound("No routine found for this user")
        return _to_record(row)

    def generate(self, user_id: Optional[str], answers: Any) -> RoutineRecord:
        user_id = _require_user_id(user_id)
        answers = validate_answers(answers)

        parts = build_routine_prompt(ROUTINE_QUESTIONS, answers)
        try:
            raw = self.llm_client.generate_text(parts, task_type="reasoning")
        except Exception as exc:
            logger.exception("routine_generation_error user_id=%s detail=%s", user_id, str(exc)[:220])
            raise GenerationFailure("Failed to generate routine", details=str(exc)[:500]) from exc

        try:
            tasks = parse_routine_tasks(raw)
        except MalformedRoutineOutput:
            logger.error("routine_parse_error user_id=%s raw=%s", user_id, str(raw)[:500])
            raise

        try:
            row = upsert_routine(self.db, user_id, tasks)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("routine_save_error user_id=%s", user_id)
            raise InternalError("Failed to save routine", details=str(exc)[:220]) from exc
        logger.info("routine_upserted user_id=%s tasks=%s", user_id, len(tasks))
        return _to_record(row)
