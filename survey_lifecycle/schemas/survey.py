"""설문 애그리거트(설문/문항/브랜딩) Pydantic 스키마입니다."""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.utils.helpers import as_utc


# 문항 유형 -> options kind
QUESTION_TYPES = {
    "multiple_choice": "choice",
    "text": "text",
    "rating": "rating",
}

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"

_http_url = TypeAdapter(HttpUrl)


def _normalize_choices(values: list[str] | None) -> list[str]:
    rows = []
    seen = set()
    for raw in values or []:
        text = str(raw or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        rows.append(text)
    return rows


class ChoiceOptions(BaseModel):
    kind: Literal["choice"] = "choice"
    choices: List[str] = Field(default_factory=list)
    multi_select: bool = False

    @field_validator("choices")
    @classmethod
    def normalize_choices(cls, value: list[str]) -> list[str]:
        return _normalize_choices(value)


class RatingRange(BaseModel):
    kind: Literal["rating"] = "rating"
    min: int = 1
    max: int = 5

    @model_validator(mode="after")
    def check_range(self):
        if self.min >= self.max:
            raise ValueError("점수형 문항의 최소값은 최대값보다 작아야 합니다.")
        return self


class FreeText(BaseModel):
    kind: Literal["text"] = "text"
    max_length: Optional[int] = Field(default=None, ge=1)


QuestionOptions = Annotated[Union[ChoiceOptions, RatingRange, FreeText], Field(discriminator="kind")]


class Question(BaseModel):
    id: Optional[str] = None
    text: str = Field(min_length=1, max_length=300)
    type: str = "text"
    required: bool = False
    options: Optional[QuestionOptions] = None
    order: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_options_match_type(self):
        normalized_type = str(self.type or "text").strip().lower().replace("-", "_")
        expected_kind = QUESTION_TYPES.get(normalized_type)
        if expected_kind is None:
            raise ValueError(f"지원하지 않는 문항 유형입니다: {self.type}")
        self.type = normalized_type

        if self.options is None:
            if expected_kind == "rating":
                self.options = RatingRange()
            elif expected_kind == "text":
                self.options = FreeText()
            else:
                raise ValueError("항목형 문항은 최소 1개 이상의 선택지가 필요합니다.")
        if self.options.kind != expected_kind:
            raise ValueError(f"'{normalized_type}' 문항에는 '{self.options.kind}' 옵션을 사용할 수 없습니다.")
        if isinstance(self.options, ChoiceOptions) and not self.options.choices:
            raise ValueError("항목형 문항은 최소 1개 이상의 선택지가 필요합니다.")
        return self


class Branding(BaseModel):
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    font: Optional[str] = Field(default=None, max_length=100)

    @field_validator("logo_url")
    @classmethod
    def check_logo_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        # 형식 검증만 수행하고 저장은 입력 문자열 그대로 한다.
        try:
            _http_url.validate_python(value)
        except ValidationError as exc:
            raise ValueError("로고 URL 형식이 올바르지 않습니다.") from exc
        return value


class _ScheduleFields(BaseModel):
    scheduled_open: Optional[datetime] = None
    scheduled_close: Optional[datetime] = None

    @field_validator("scheduled_open", "scheduled_close")
    @classmethod
    def to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Survey(_ScheduleFields):
    """설문 애그리거트 값. 저장소에서 읽고 쓰는 단위입니다."""

    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    version: int = Field(default=1, ge=1)
    status: SurveyStatus = SurveyStatus.CREATED
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    is_template: bool = False
    admin_id: Optional[str] = None
    branding: Optional[Branding] = None
    previous_version_id: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    # 0은 아직 저장되지 않은 설문
    revision: int = Field(default=0, ge=0)


class SurveyCreate(_ScheduleFields):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    branding: Optional[Branding] = None
    questions: Optional[List[Question]] = None


class SurveyUpdate(_ScheduleFields):
    """전체 교체용 요청. created_at/id/revision 이외의 필드를 덮어씁니다."""

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    version: int = Field(default=1, ge=1)
    status: Optional[SurveyStatus] = None
    is_template: bool = False
    admin_id: Optional[str] = None
    branding: Optional[Branding] = None
    previous_version_id: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    # 클라이언트가 마지막으로 읽은 revision (선택)
    revision: Optional[int] = Field(default=None, ge=1)


class DeleteResult(BaseModel):
    message: str
    deleted: bool
