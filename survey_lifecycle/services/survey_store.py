"""설문 애그리거트를 한 행(문서)으로 저장/조회하는 저장소 어댑터입니다.

문항과 브랜딩은 JSON 텍스트로 내장되며, ``revision`` 컬럼으로 낙관적 동시성을 보장한다.
"""

import json
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from survey_lifecycle.errors import ConflictError, SurveyNotFoundError
from survey_lifecycle.models.survey import SurveyDocument, SurveyStatus
from survey_lifecycle.schemas.survey import Branding, Question, Survey
from survey_lifecycle.utils.helpers import as_utc, new_id

logger = logging.getLogger(__name__)


def _dump_branding(survey: Survey) -> Optional[str]:
    if survey.branding is None:
        return None
    return json.dumps(survey.branding.model_dump(mode="json"), ensure_ascii=False)


def _dump_questions(survey: Survey) -> str:
    return json.dumps([q.model_dump(mode="json") for q in survey.questions], ensure_ascii=False)


def _parse_branding(row: SurveyDocument) -> Optional[Branding]:
    if not row.branding_json:
        return None
    try:
        parsed = json.loads(row.branding_json)
    except json.JSONDecodeError:
        logger.warning("[store] unreadable branding_json: survey_id=%s", row.survey_id)
        return None
    if not isinstance(parsed, dict):
        return None
    return Branding.model_validate(parsed)


def _parse_questions(row: SurveyDocument) -> List[Question]:
    raw = row.questions_json or "[]"
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[store] unreadable questions_json: survey_id=%s", row.survey_id)
        return []
    if not isinstance(parsed, list):
        return []
    return [Question.model_validate(item) for item in parsed if isinstance(item, dict)]


def _row_values(survey: Survey) -> dict:
    return {
        "name": survey.name,
        "description": survey.description,
        "version": survey.version,
        "status": SurveyStatus(survey.status).value,
        "created_at": as_utc(survey.created_at),
        "modified_at": as_utc(survey.modified_at),
        "scheduled_open": as_utc(survey.scheduled_open),
        "scheduled_close": as_utc(survey.scheduled_close),
        "is_template": bool(survey.is_template),
        "admin_id": survey.admin_id,
        "previous_version_id": survey.previous_version_id,
        "branding_json": _dump_branding(survey),
        "questions_json": _dump_questions(survey),
    }


def to_survey(row: SurveyDocument) -> Survey:
    return Survey(
        id=row.survey_id,
        name=row.name,
        description=row.description,
        version=row.version,
        status=SurveyStatus(row.status),
        created_at=as_utc(row.created_at),
        modified_at=as_utc(row.modified_at),
        scheduled_open=row.scheduled_open,
        scheduled_close=row.scheduled_close,
        is_template=bool(row.is_template),
        admin_id=row.admin_id,
        branding=_parse_branding(row),
        previous_version_id=row.previous_version_id,
        questions=_parse_questions(row),
        revision=row.revision,
    )


def _query(db: Session):
    return db.query(SurveyDocument).order_by(SurveyDocument.created_at.asc(), SurveyDocument.survey_id.asc())


def get(db: Session, survey_id: str) -> Optional[Survey]:
    if not survey_id:
        return None
    row = db.query(SurveyDocument).filter(SurveyDocument.survey_id == str(survey_id)).first()
    return to_survey(row) if row else None


def exists(db: Session, survey_id: str) -> bool:
    if not survey_id:
        return False
    return (
        db.query(SurveyDocument.survey_id)
        .filter(SurveyDocument.survey_id == str(survey_id))
        .first()
        is not None
    )


def _insert(db: Session, survey: Survey) -> Survey:
    row = SurveyDocument(survey_id=survey.id or new_id(), revision=1, **_row_values(survey))
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("같은 ID의 설문이 이미 존재합니다.") from exc
    db.refresh(row)
    return to_survey(row)


def put(db: Session, survey: Survey) -> Survey:
    """설문을 저장하고 저장된 값을 반환한다.

    ``revision == 0`` 이면 신규 문서로 삽입하고 ID를 발급한다. 그 외에는
    읽었던 revision과 일치할 때만 갱신하며, revision은 같은 UPDATE 문에서 1 증가한다.
    """
    if survey.revision == 0:
        return _insert(db, survey)

    updated = (
        db.query(SurveyDocument)
        .filter(
            SurveyDocument.survey_id == survey.id,
            SurveyDocument.revision == survey.revision,
        )
        .update(
            {**_row_values(survey), "revision": SurveyDocument.revision + 1},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        if not exists(db, survey.id):
            raise SurveyNotFoundError()
        logger.warning(
            "[store] stale write rejected: survey_id=%s expected_revision=%s",
            survey.id,
            survey.revision,
        )
        raise ConflictError()
    db.commit()
    return get(db, survey.id)


def delete(db: Session, survey_id: str) -> bool:
    deleted = db.query(SurveyDocument).filter(SurveyDocument.survey_id == str(survey_id)).delete()
    db.commit()
    return bool(deleted)


def find_all(db: Session) -> List[Survey]:
    return [to_survey(row) for row in _query(db).all()]


def find_by_status(db: Session, status: SurveyStatus, include_templates: bool = False) -> List[Survey]:
    query = _query(db).filter(SurveyDocument.status == SurveyStatus(status).value)
    if not include_templates:
        query = query.filter(SurveyDocument.is_template == False)  # noqa: E712
    return [to_survey(row) for row in query.all()]


def find_by_template_flag(db: Session, is_template: bool) -> List[Survey]:
    query = _query(db).filter(SurveyDocument.is_template == bool(is_template))
    return [to_survey(row) for row in query.all()]


def find_by_admin_id(db: Session, admin_id: str) -> List[Survey]:
    query = _query(db).filter(SurveyDocument.admin_id == str(admin_id))
    return [to_survey(row) for row in query.all()]


def find_by_name_contains(db: Session, text: str) -> List[Survey]:
    # SQLite lower()는 ASCII만 변환하므로 비교는 Python casefold로 수행한다.
    needle = str(text or "").casefold()
    rows = _query(db).all()
    return [to_survey(row) for row in rows if needle in (row.name or "").casefold()]


def find_overdue(db: Session, now: datetime) -> List[Survey]:
    query = _query(db).filter(
        SurveyDocument.status == SurveyStatus.PUBLISHED.value,
        SurveyDocument.scheduled_close.isnot(None),
        SurveyDocument.scheduled_close < as_utc(now),
    )
    return [to_survey(row) for row in query.all()]
