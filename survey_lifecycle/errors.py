"""설문 라이프사이클 도메인 예외 정의입니다.

서비스 레이어는 HTTP 타입을 알지 못하며, 아래 예외만 발생시킨다.
상태 코드 매핑은 ``main.py``의 예외 핸들러가 담당한다.
"""


class SurveyLifecycleError(Exception):
    code = "SYS_001"
    status_code = 500
    default_detail = "설문 처리 중 오류가 발생했습니다."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidArgumentError(SurveyLifecycleError):
    code = "VAL_002"
    status_code = 400
    default_detail = "요청 값이 올바르지 않습니다."


class ScheduleParseError(InvalidArgumentError):
    code = "VAL_005"
    default_detail = "일정 시각 형식이 올바르지 않습니다."


class NotFoundError(SurveyLifecycleError):
    code = "RES_001"
    status_code = 404
    default_detail = "리소스를 찾을 수 없습니다."


class SurveyNotFoundError(NotFoundError):
    code = "SUR_001"
    default_detail = "설문을 찾을 수 없습니다."


class QuestionNotFoundError(NotFoundError):
    code = "SUR_004"
    default_detail = "질문을 찾을 수 없습니다."


class InvalidTransitionError(SurveyLifecycleError):
    code = "SUR_005"
    status_code = 409
    default_detail = "허용되지 않는 설문 상태 전이입니다."


class SurveyNotEditableError(SurveyLifecycleError):
    code = "SUR_006"
    status_code = 409
    default_detail = "현재 상태에서는 설문을 수정할 수 없습니다."


class ConflictError(SurveyLifecycleError):
    code = "RES_004"
    status_code = 409
    default_detail = "다른 요청이 먼저 설문을 변경했습니다. 다시 조회 후 시도해주세요."


class CorruptChainError(SurveyLifecycleError):
    code = "SUR_007"
    status_code = 500
    default_detail = "설문 버전 이력에 순환 참조가 있습니다."
