"""설문 라이프사이클 API 라우터입니다. 요청을 검증하고 서비스 레이어로 위임합니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from survey_lifecycle.config import settings
from survey_lifecycle.database import get_db
from survey_lifecycle.errors import SurveyNotFoundError
from survey_lifecycle.middleware.auth_middleware import get_current_actor, require_roles
from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.schemas.actor import Actor
from survey_lifecycle.schemas.survey import (
    Branding,
    DeleteResult,
    Question,
    Survey,
    SurveyCreate,
    SurveyUpdate,
)
from survey_lifecycle.services import survey_service
from survey_lifecycle.utils.permissions import ensure_can_manage_survey

router = APIRouter(prefix="/api/surveys", tags=["surveys"])

require_admin = require_roles(settings.ADMIN_ROLE)


def _get_owned_survey(db: Session, survey_id: str, current_actor: Actor) -> Survey:
    survey = survey_service.get_survey(db, survey_id)
    ensure_can_manage_survey(current_actor, survey)
    return survey


@router.post("", response_model=Survey, status_code=201)
def create_survey(
    data: SurveyCreate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    return survey_service.create_survey(db, data, current_actor.actor_id)


@router.get("", response_model=List[Survey])
def list_surveys(
    status: Optional[SurveyStatus] = None,
    is_template: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.list_surveys(db, status=status, is_template=is_template)


@router.get("/templates", response_model=List[Survey])
def list_templates(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.list_templates(db)


@router.get("/search", response_model=List[Survey])
def search_surveys(
    name: Optional[str] = None,
    admin_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.search_surveys(db, name=name, admin_id=admin_id)


@router.get("/{survey_id}", response_model=Survey)
def get_survey(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.get_survey(db, survey_id)


@router.put("/{survey_id}", response_model=Survey)
def update_survey(
    survey_id: str,
    data: SurveyUpdate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.update_survey(db, survey_id=survey_id, data=data)


@router.delete("/{survey_id}", response_model=DeleteResult)
def delete_survey(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    if not survey_service.delete_survey(db, survey_id=survey_id):
        raise SurveyNotFoundError()
    return {"message": "삭제되었습니다.", "deleted": True}


@router.post("/{survey_id}/publish", response_model=Survey)
def publish_survey(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.publish_survey(db, survey_id=survey_id)


@router.post("/{survey_id}/close", response_model=Survey)
def close_survey(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.close_survey(db, survey_id=survey_id)


@router.post("/{survey_id}/duplicate", response_model=Survey, status_code=201)
def duplicate_survey(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.duplicate_survey(db, survey_id=survey_id)


@router.patch("/{survey_id}/schedule", response_model=Survey)
def update_schedule(
    survey_id: str,
    scheduled_open: str = Query(...),
    scheduled_close: str = Query(...),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.update_schedule(
        db,
        survey_id=survey_id,
        scheduled_open=scheduled_open,
        scheduled_close=scheduled_close,
    )


@router.patch("/{survey_id}/branding", response_model=Survey)
def update_branding(
    survey_id: str,
    branding: Branding,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.update_branding(db, survey_id=survey_id, branding=branding)


@router.get("/{survey_id}/questions", response_model=List[Question])
def get_questions(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.get_questions(db, survey_id=survey_id)


@router.post("/{survey_id}/questions", response_model=Survey)
def add_question(
    survey_id: str,
    question: Question,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.add_question(db, survey_id=survey_id, question=question)


@router.get("/{survey_id}/questions/{question_id}", response_model=Question)
def get_question(
    survey_id: str,
    question_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.get_question(db, survey_id=survey_id, question_id=question_id)


@router.put("/{survey_id}/questions/{question_id}", response_model=Survey)
def update_question(
    survey_id: str,
    question_id: str,
    question: Question,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.update_question(
        db,
        survey_id=survey_id,
        question_id=question_id,
        question=question,
    )


@router.delete("/{survey_id}/questions/{question_id}", response_model=Survey)
def remove_question(
    survey_id: str,
    question_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.remove_question(db, survey_id=survey_id, question_id=question_id)


@router.post("/{survey_id}/versions", response_model=Survey, status_code=201)
def create_new_version(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    _get_owned_survey(db, survey_id, current_actor)
    return survey_service.create_new_version(db, survey_id=survey_id)


@router.get("/{survey_id}/versions", response_model=List[Survey])
def get_version_history(
    survey_id: str,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    return survey_service.get_version_history(db, survey_id=survey_id)
