"""설문에 내장된 문항 목록을 편집하는 순수 함수 모음입니다.

모든 함수는 입력 설문을 변경하지 않고 새 ``Survey`` 값을 반환한다.
"""

from typing import List

from survey_lifecycle.errors import InvalidArgumentError, QuestionNotFoundError
from survey_lifecycle.schemas.survey import Question, Survey
from survey_lifecycle.utils.helpers import new_id


def _next_order(questions: List[Question]) -> int:
    return max((int(q.order or 0) for q in questions), default=0) + 1


def _append(questions: List[Question], question: Question, *, keep_order: bool = False) -> List[Question]:
    order = question.order if keep_order and question.order else _next_order(questions)
    added = question.model_copy(update={"id": question.id or new_id(), "order": order})
    if any(q.id == added.id for q in questions):
        raise InvalidArgumentError(f"이미 존재하는 질문 ID입니다: {added.id}")
    return [*questions, added]


def _index_of(survey: Survey, question_id: str) -> int:
    for index, question in enumerate(survey.questions):
        if question.id == question_id:
            return index
    raise QuestionNotFoundError(f"질문을 찾을 수 없습니다: {question_id}")


def normalize_questions(questions: List[Question] | None) -> List[Question]:
    """누락된 ID와 순서만 채운다. 이미 지정된 순서는 유지한다."""
    rows: List[Question] = []
    for question in questions or []:
        rows = _append(rows, question, keep_order=True)
    return rows


def add_question(survey: Survey, question: Question) -> Survey:
    return survey.model_copy(update={"questions": _append(list(survey.questions), question)})


def update_question(survey: Survey, question_id: str, replacement: Question) -> Survey:
    index = _index_of(survey, question_id)
    questions = list(survey.questions)
    questions[index] = replacement.model_copy(
        update={"id": question_id, "order": questions[index].order}
    )
    return survey.model_copy(update={"questions": questions})


def remove_question(survey: Survey, question_id: str) -> Survey:
    # 남은 문항의 order는 재정렬하지 않는다.
    _index_of(survey, question_id)
    questions = [q for q in survey.questions if q.id != question_id]
    return survey.model_copy(update={"questions": questions})


def get_question(survey: Survey, question_id: str) -> Question:
    return survey.questions[_index_of(survey, question_id)]
