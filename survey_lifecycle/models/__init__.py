"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from survey_lifecycle.models.survey import SurveyDocument, SurveyStatus

__all__ = [
    "SurveyDocument",
    "SurveyStatus",
]
