"""설문 라이프사이클 서비스 레이어입니다.

모든 연산은 저장소에서 설문을 읽어 예약 마감을 먼저 반영한 뒤, 하위 컴포넌트
(상태 머신, 문항 편집기, 버전 체인)를 적용하고 저장한 결과를 반환한다.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from survey_lifecycle.config import settings
from survey_lifecycle.errors import (
    InvalidArgumentError,
    SurveyNotEditableError,
    SurveyNotFoundError,
)
from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.schemas.survey import Branding, Question, Survey, SurveyCreate, SurveyUpdate
from survey_lifecycle.services import question_editor, schedule_service, survey_store, version_service
from survey_lifecycle.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def _get_survey(db: Session, survey_id: str) -> Survey:
    survey = survey_store.get(db, survey_id)
    if survey is None:
        raise SurveyNotFoundError(f"설문을 찾을 수 없습니다: {survey_id}")
    return schedule_service.apply_scheduled_close(db, survey)


def _ensure_editable(survey: Survey):
    if not survey.status.is_editable():
        raise SurveyNotEditableError(f"{survey.status.value} 상태의 설문은 수정할 수 없습니다.")


def _ensure_not_closed(survey: Survey):
    if survey.status.is_closed():
        raise SurveyNotEditableError("마감된 설문은 변경할 수 없습니다.")


def _save(db: Session, survey: Survey, **changes) -> Survey:
    return survey_store.put(db, survey.model_copy(update={**changes, "modified_at": utcnow()}))


def create_survey(db: Session, data: Optional[SurveyCreate], actor_id: str) -> Survey:
    if data is None:
        raise InvalidArgumentError("설문은 비어 있을 수 없습니다.")
    if not str(actor_id or "").strip():
        raise InvalidArgumentError("설문 작성자 정보가 필요합니다.")
    schedule_service.ensure_schedule_window(data.scheduled_open, data.scheduled_close)
    now = utcnow()
    survey = Survey(
        name=data.name,
        description=data.description,
        version=1,
        status=SurveyStatus.CREATED,
        created_at=now,
        modified_at=now,
        scheduled_open=data.scheduled_open,
        scheduled_close=data.scheduled_close,
        is_template=False,
        admin_id=str(actor_id),
        branding=data.branding,
        questions=question_editor.normalize_questions(data.questions),
    )
    saved = survey_store.put(db, survey)
    logger.info("[survey] created: survey_id=%s admin_id=%s", saved.id, saved.admin_id)
    return saved


def list_surveys(
    db: Session,
    *,
    status: Optional[SurveyStatus] = None,
    is_template: Optional[bool] = None,
) -> List[Survey]:
    # 목록 조회도 예약 마감을 먼저 반영해 상태 필터가 실제 상태를 보도록 한다.
    schedule_service.close_overdue_surveys(db)
    if status is not None:
        return survey_store.find_by_status(db, SurveyStatus(status))
    if is_template is not None:
        return survey_store.find_by_template_flag(db, is_template)
    return survey_store.find_all(db)


def list_templates(db: Session) -> List[Survey]:
    return list_surveys(db, is_template=True)


def get_survey(db: Session, survey_id: str) -> Survey:
    return _get_survey(db, survey_id)


def update_survey(db: Session, *, survey_id: str, data: SurveyUpdate) -> Survey:
    existing = _get_survey(db, survey_id)
    _ensure_editable(existing)

    next_status = existing.status
    if data.status is not None and data.status is not existing.status:
        next_status = existing.status.ensure_transition_to(data.status)
    if data.previous_version_id and data.previous_version_id == existing.id:
        raise InvalidArgumentError("설문은 자기 자신을 이전 버전으로 지정할 수 없습니다.")
    schedule_service.ensure_schedule_window(data.scheduled_open, data.scheduled_close)

    replacement = Survey(
        id=existing.id,
        name=data.name,
        description=data.description,
        version=data.version,
        status=next_status,
        created_at=existing.created_at,
        modified_at=utcnow(),
        scheduled_open=data.scheduled_open,
        scheduled_close=data.scheduled_close,
        is_template=data.is_template,
        admin_id=data.admin_id or existing.admin_id,
        branding=data.branding,
        previous_version_id=data.previous_version_id,
        questions=question_editor.normalize_questions(data.questions),
        revision=data.revision or existing.revision,
    )
    saved = survey_store.put(db, replacement)
    if saved.status is not existing.status:
        logger.info(
            "[survey] status changed by update: survey_id=%s %s->%s",
            saved.id,
            existing.status.value,
            saved.status.value,
        )
    return saved


def delete_survey(db: Session, *, survey_id: str) -> bool:
    deleted = survey_store.delete(db, survey_id)
    if deleted:
        logger.info("[survey] deleted: survey_id=%s", survey_id)
    return deleted


def search_surveys(
    db: Session,
    *,
    name: Optional[str] = None,
    admin_id: Optional[str] = None,
) -> List[Survey]:
    schedule_service.close_overdue_surveys(db)
    if name is not None and admin_id is not None:
        return [row for row in survey_store.find_by_name_contains(db, name) if row.admin_id == admin_id]
    if name is not None:
        return survey_store.find_by_name_contains(db, name)
    if admin_id is not None:
        return survey_store.find_by_admin_id(db, admin_id)
    return survey_store.find_all(db)


def transition_survey(db: Session, *, survey_id: str, target: SurveyStatus) -> Survey:
    survey = _get_survey(db, survey_id)
    next_status = survey.status.ensure_transition_to(target)
    saved = _save(db, survey, status=next_status)
    logger.info("[survey] status changed: survey_id=%s %s->%s", saved.id, survey.status.value, saved.status.value)
    return saved


def publish_survey(db: Session, *, survey_id: str) -> Survey:
    return transition_survey(db, survey_id=survey_id, target=SurveyStatus.PUBLISHED)


def close_survey(db: Session, *, survey_id: str) -> Survey:
    return transition_survey(db, survey_id=survey_id, target=SurveyStatus.CLOSED)


def duplicate_survey(db: Session, *, survey_id: str) -> Survey:
    # 신규 버전과 달리 문항/이전 버전 링크는 복사하지 않는다.
    original = _get_survey(db, survey_id)
    now = utcnow()
    copy = Survey(
        name=f"{original.name}{settings.COPY_SUFFIX}",
        description=original.description,
        created_at=now,
        modified_at=now,
        admin_id=original.admin_id,
        branding=original.branding.model_copy() if original.branding else None,
    )
    saved = survey_store.put(db, copy)
    logger.info("[survey] duplicated: survey_id=%s source=%s", saved.id, original.id)
    return saved


def update_schedule(
    db: Session,
    *,
    survey_id: str,
    scheduled_open: str,
    scheduled_close: str,
) -> Survey:
    opens_at = schedule_service.parse_timestamp(scheduled_open, "scheduled_open")
    closes_at = schedule_service.parse_timestamp(scheduled_close, "scheduled_close")
    schedule_service.ensure_schedule_window(opens_at, closes_at)
    survey = _get_survey(db, survey_id)
    _ensure_not_closed(survey)
    return _save(db, survey, scheduled_open=opens_at, scheduled_close=closes_at)


def update_branding(db: Session, *, survey_id: str, branding: Optional[Branding]) -> Survey:
    survey = _get_survey(db, survey_id)
    _ensure_not_closed(survey)
    return _save(db, survey, branding=branding)


def add_question(db: Session, *, survey_id: str, question: Question) -> Survey:
    survey = _get_survey(db, survey_id)
    _ensure_editable(survey)
    updated = question_editor.add_question(survey, question)
    return _save(db, updated)


def update_question(db: Session, *, survey_id: str, question_id: str, question: Question) -> Survey:
    survey = _get_survey(db, survey_id)
    _ensure_editable(survey)
    updated = question_editor.update_question(survey, question_id, question)
    return _save(db, updated)


def remove_question(db: Session, *, survey_id: str, question_id: str) -> Survey:
    survey = _get_survey(db, survey_id)
    _ensure_editable(survey)
    updated = question_editor.remove_question(survey, question_id)
    return _save(db, updated)


def get_questions(db: Session, *, survey_id: str) -> List[Question]:
    return list(_get_survey(db, survey_id).questions)


def get_question(db: Session, *, survey_id: str, question_id: str) -> Question:
    return question_editor.get_question(_get_survey(db, survey_id), question_id)


def create_new_version(db: Session, *, survey_id: str) -> Survey:
    return version_service.create_new_version(db, _get_survey(db, survey_id))


def get_version_history(db: Session, *, survey_id: str) -> List[Survey]:
    schedule_service.close_overdue_surveys(db)
    return version_service.get_version_history(db, survey_id)
