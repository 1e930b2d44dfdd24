"""서비스 레이어 패키지 초기화 모듈입니다."""

from survey_lifecycle.services import (
    survey_store,
    question_editor,
    schedule_service,
    version_service,
    survey_service,
)
