"""설문 공개/마감 일정 처리와 예약 마감(지연 평가) 서비스입니다."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_lifecycle.errors import (
    ConflictError,
    InvalidArgumentError,
    ScheduleParseError,
    SurveyNotFoundError,
)
from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.schemas.survey import Survey
from survey_lifecycle.services import survey_store
from survey_lifecycle.utils.helpers import as_utc, utcnow

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str], field_name: str = "timestamp") -> datetime:
    text = str(value or "").strip()
    if not text:
        raise ScheduleParseError(f"{field_name} 값이 비어 있습니다.")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ScheduleParseError(f"{field_name} 값이 ISO-8601 형식이 아닙니다: {value}") from exc
    return as_utc(parsed)


def ensure_schedule_window(scheduled_open: Optional[datetime], scheduled_close: Optional[datetime]):
    if scheduled_open is None or scheduled_close is None:
        return
    if as_utc(scheduled_open) >= as_utc(scheduled_close):
        raise InvalidArgumentError("설문 공개 시각은 마감 시각보다 이전이어야 합니다.")


def is_overdue(survey: Survey, now: Optional[datetime] = None) -> bool:
    if survey.status is not SurveyStatus.PUBLISHED or survey.scheduled_close is None:
        return False
    return as_utc(now or utcnow()) > as_utc(survey.scheduled_close)


def apply_scheduled_close(db: Session, survey: Survey, now: Optional[datetime] = None) -> Survey:
    """마감 시각이 지난 공개 설문을 CLOSED로 전이해 저장한다. 해당 없으면 그대로 반환한다."""
    if not is_overdue(survey, now):
        return survey
    closed = survey.model_copy(
        update={
            "status": survey.status.ensure_transition_to(SurveyStatus.CLOSED),
            "modified_at": utcnow(),
        }
    )
    try:
        saved = survey_store.put(db, closed)
    except ConflictError:
        # 다른 요청이 먼저 마감 처리했다면 그 결과를 그대로 사용한다.
        latest = survey_store.get(db, survey.id)
        if latest is None:
            raise SurveyNotFoundError()
        if latest.status is SurveyStatus.CLOSED:
            return latest
        raise
    logger.info(
        "[schedule] survey auto-closed: survey_id=%s scheduled_close=%s",
        saved.id,
        saved.scheduled_close.isoformat() if saved.scheduled_close else None,
    )
    return saved


def close_overdue_surveys(db: Session, now: Optional[datetime] = None) -> List[Survey]:
    current = as_utc(now or utcnow())
    closed: List[Survey] = []
    for survey in survey_store.find_overdue(db, current):
        try:
            closed.append(apply_scheduled_close(db, survey, current))
        except SurveyNotFoundError:
            # 조회 직후 다른 요청이 삭제한 설문은 건너뛴다.
            logger.info("[schedule] skipped deleted survey: survey_id=%s", survey.id)
    return closed
