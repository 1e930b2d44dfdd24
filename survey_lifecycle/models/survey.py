"""설문 애그리거트 SQLAlchemy 모델과 상태 머신 정의입니다."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from survey_lifecycle.database import Base
from survey_lifecycle.errors import InvalidTransitionError


class SurveyStatus(str, enum.Enum):
    CREATED = "CREATED"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"

    def is_editable(self) -> bool:
        return self is SurveyStatus.CREATED

    def can_receive_responses(self) -> bool:
        return self is SurveyStatus.PUBLISHED

    def is_closed(self) -> bool:
        return self is SurveyStatus.CLOSED

    def next_status(self) -> "SurveyStatus | None":
        return _NEXT_STATUS.get(self)

    def can_transition_to(self, target: "SurveyStatus | None") -> bool:
        if target is None:
            return False
        return self.next_status() is target

    def ensure_transition_to(self, target: "SurveyStatus") -> "SurveyStatus":
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f"설문 상태를 {self.value}에서 {SurveyStatus(target).value}(으)로 변경할 수 없습니다."
            )
        return SurveyStatus(target)


# 정방향 단일 경로: CREATED -> PUBLISHED -> CLOSED
_NEXT_STATUS = {
    SurveyStatus.CREATED: SurveyStatus.PUBLISHED,
    SurveyStatus.PUBLISHED: SurveyStatus.CLOSED,
}


class SurveyDocument(Base):
    __tablename__ = "survey_document"

    survey_id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    version = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=SurveyStatus.CREATED.value)
    created_at = Column(DateTime(timezone=True), nullable=False)
    modified_at = Column(DateTime(timezone=True), nullable=False)
    scheduled_open = Column(DateTime(timezone=True), nullable=True)
    scheduled_close = Column(DateTime(timezone=True), nullable=True)
    is_template = Column(Boolean, nullable=False, default=False)
    admin_id = Column(String(64), nullable=False)
    previous_version_id = Column(String(32), nullable=True)
    branding_json = Column(Text, nullable=True)  # JSON object or NULL
    questions_json = Column(Text, nullable=False, default="[]")  # JSON array
    revision = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("idx_survey_document_status", "status", "is_template"),
        Index("idx_survey_document_admin", "admin_id"),
        Index("idx_survey_document_previous", "previous_version_id"),
    )
