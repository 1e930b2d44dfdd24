"""Permissions 관련 공용 유틸리티 헬퍼입니다."""

from fastapi import HTTPException

from survey_lifecycle.config import settings
from survey_lifecycle.schemas.actor import Actor
from survey_lifecycle.schemas.survey import Survey


ADMIN = settings.ADMIN_ROLE


def is_admin(actor: Actor) -> bool:
    return ADMIN in actor.roles


def is_owner(actor: Actor, survey: Survey) -> bool:
    return survey.admin_id == actor.actor_id


def can_manage_survey(actor: Actor, survey: Survey) -> bool:
    # 설문 변경은 작성한 관리자 본인만 가능하다.
    return is_admin(actor) and is_owner(actor, survey)


def ensure_can_manage_survey(actor: Actor, survey: Survey):
    if not can_manage_survey(actor, survey):
        raise HTTPException(status_code=403, detail="설문 관리는 작성한 관리자만 가능합니다.")
