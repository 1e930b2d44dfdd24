"""설문 라이프사이클 서비스 레이어 테스트."""

from datetime import timedelta

import pytest

from survey_lifecycle.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    QuestionNotFoundError,
    ScheduleParseError,
    SurveyNotEditableError,
    SurveyNotFoundError,
)
from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.schemas.survey import Branding, Question, SurveyCreate, SurveyUpdate
from survey_lifecycle.services import survey_service, survey_store
from survey_lifecycle.utils.helpers import utcnow


def _iso(value) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def test_create_forces_initial_lifecycle_fields(db):
    survey = survey_service.create_survey(db, SurveyCreate(name="CSAT"), "admin1")

    assert survey.id
    assert survey.name == "CSAT"
    assert survey.admin_id == "admin1"
    assert survey.status is SurveyStatus.CREATED
    assert survey.version == 1
    assert survey.is_template is False
    assert survey.questions == []
    assert survey.previous_version_id is None
    assert survey.created_at is not None
    assert survey.modified_at is not None


def test_create_numbers_initial_questions(db):
    survey = survey_service.create_survey(
        db,
        SurveyCreate(name="Intro", questions=[Question(text="A"), Question(text="B", type="rating")]),
        "admin1",
    )
    assert [q.order for q in survey.questions] == [1, 2]
    assert all(q.id for q in survey.questions)


def test_create_rejects_missing_payload_or_actor(db):
    with pytest.raises(InvalidArgumentError):
        survey_service.create_survey(db, None, "admin1")
    with pytest.raises(InvalidArgumentError):
        survey_service.create_survey(db, SurveyCreate(name="No actor"), "")


def test_create_rejects_inverted_schedule(db):
    now = utcnow()
    with pytest.raises(InvalidArgumentError):
        survey_service.create_survey(
            db,
            SurveyCreate(name="Bad window", scheduled_open=now, scheduled_close=now - timedelta(hours=1)),
            "admin1",
        )


def test_get_unknown_survey(db):
    with pytest.raises(SurveyNotFoundError):
        survey_service.get_survey(db, "missing")


def test_list_filters_are_mutually_exclusive(db, make_survey):
    draft = make_survey(name="Draft")
    template = make_survey(name="Template")
    template = survey_service.update_survey(
        db,
        survey_id=template.id,
        data=SurveyUpdate(name="Template", is_template=True),
    )
    published = survey_service.publish_survey(db, survey_id=make_survey(name="Live").id)

    assert {s.id for s in survey_service.list_surveys(db)} == {draft.id, template.id, published.id}
    assert [s.id for s in survey_service.list_surveys(db, status=SurveyStatus.CREATED)] == [draft.id]
    assert [s.id for s in survey_service.list_surveys(db, status=SurveyStatus.PUBLISHED)] == [published.id]
    assert [s.id for s in survey_service.list_surveys(db, is_template=True)] == [template.id]
    assert [s.id for s in survey_service.list_templates(db)] == [template.id]
    # status가 주어지면 is_template는 무시된다.
    assert [s.id for s in survey_service.list_surveys(db, status=SurveyStatus.CREATED, is_template=True)] == [draft.id]


def test_update_roundtrip_preserves_created_at(db, make_survey):
    original = make_survey(name="Before")
    replacement = SurveyUpdate(
        name="After",
        description="updated",
        version=3,
        branding=Branding(primary_color="#abcdef"),
        questions=[Question(text="Q1"), Question(text="Q2", type="rating")],
    )

    updated = survey_service.update_survey(db, survey_id=original.id, data=replacement)
    loaded = survey_service.get_survey(db, original.id)

    assert loaded == updated
    assert loaded.id == original.id
    assert loaded.created_at == original.created_at
    assert loaded.name == "After"
    assert loaded.description == "updated"
    assert loaded.version == 3
    assert loaded.branding == Branding(primary_color="#abcdef")
    assert [q.text for q in loaded.questions] == ["Q1", "Q2"]
    assert loaded.admin_id == original.admin_id
    assert loaded.status is SurveyStatus.CREATED


def test_update_routes_status_change_through_state_machine(db, make_survey):
    survey = make_survey()
    with pytest.raises(InvalidTransitionError):
        survey_service.update_survey(
            db,
            survey_id=survey.id,
            data=SurveyUpdate(name="Skip", status=SurveyStatus.CLOSED),
        )

    published = survey_service.update_survey(
        db,
        survey_id=survey.id,
        data=SurveyUpdate(name="Go", status=SurveyStatus.PUBLISHED),
    )
    assert published.status is SurveyStatus.PUBLISHED

    with pytest.raises(SurveyNotEditableError):
        survey_service.update_survey(db, survey_id=survey.id, data=SurveyUpdate(name="Late edit"))


def test_update_with_stale_revision_conflicts(db, make_survey):
    survey = make_survey()
    survey_service.add_question(db, survey_id=survey.id, question=Question(text="A"))

    with pytest.raises(ConflictError):
        survey_service.update_survey(
            db,
            survey_id=survey.id,
            data=SurveyUpdate(name="Stale", revision=survey.revision),
        )


def test_update_unknown_survey(db):
    with pytest.raises(SurveyNotFoundError):
        survey_service.update_survey(db, survey_id="missing", data=SurveyUpdate(name="X"))


def test_search_matches_accented_names_case_insensitively(db, make_survey):
    accented = make_survey(name="ÉVALUATION Été")
    make_survey(name="CSAT Quarterly")

    assert [s.name for s in survey_service.search_surveys(db, name="évaluation")] == [accented.name]


def test_update_rejects_self_reference_as_previous_version(db, make_survey):
    survey = make_survey()
    with pytest.raises(InvalidArgumentError):
        survey_service.update_survey(
            db,
            survey_id=survey.id,
            data=SurveyUpdate(name="Loop", previous_version_id=survey.id),
        )

    assert survey_store.get(db, survey.id).previous_version_id is None
    assert [s.id for s in survey_service.get_version_history(db, survey_id=survey.id)] == [survey.id]


def test_delete_twice_reports_false(db, make_survey):
    survey = make_survey()
    assert survey_service.delete_survey(db, survey_id=survey.id) is True
    assert survey_service.delete_survey(db, survey_id=survey.id) is False
    assert survey_service.delete_survey(db, survey_id="never-existed") is False


def test_search_combines_criteria(db, make_survey):
    csat_1 = make_survey(name="Customer CSAT", actor_id="admin1")
    csat_2 = make_survey(name="Partner csat", actor_id="admin2")
    nps = make_survey(name="NPS", actor_id="admin1")

    assert {s.id for s in survey_service.search_surveys(db, name="CsAt")} == {csat_1.id, csat_2.id}
    assert {s.id for s in survey_service.search_surveys(db, admin_id="admin1")} == {csat_1.id, nps.id}
    assert [s.id for s in survey_service.search_surveys(db, name="csat", admin_id="admin2")] == [csat_2.id]
    assert len(survey_service.search_surveys(db)) == 3


def test_publish_then_close(db, make_survey):
    survey = make_survey()
    published = survey_service.publish_survey(db, survey_id=survey.id)
    assert published.status is SurveyStatus.PUBLISHED

    with pytest.raises(InvalidTransitionError):
        survey_service.publish_survey(db, survey_id=survey.id)

    closed = survey_service.close_survey(db, survey_id=survey.id)
    assert closed.status is SurveyStatus.CLOSED

    with pytest.raises(InvalidTransitionError):
        survey_service.close_survey(db, survey_id=survey.id)
    with pytest.raises(InvalidTransitionError):
        survey_service.transition_survey(db, survey_id=survey.id, target=SurveyStatus.CREATED)


def test_close_requires_published(db, make_survey):
    survey = make_survey()
    with pytest.raises(InvalidTransitionError):
        survey_service.close_survey(db, survey_id=survey.id)
    assert survey_store.get(db, survey.id).status is SurveyStatus.CREATED


def test_transitions_on_unknown_survey(db):
    with pytest.raises(SurveyNotFoundError):
        survey_service.publish_survey(db, survey_id="missing")
    with pytest.raises(SurveyNotFoundError):
        survey_service.close_survey(db, survey_id="missing")


def test_duplicate_copies_descriptive_fields_only(db, make_survey):
    original = make_survey(
        name="CSAT",
        description="quarterly",
        branding=Branding(primary_color="#123456"),
        questions=[Question(text="Q1")],
    )
    original = survey_service.publish_survey(db, survey_id=original.id)
    successor = survey_service.create_new_version(db, survey_id=original.id)

    copy = survey_service.duplicate_survey(db, survey_id=successor.id)

    assert copy.id not in {original.id, successor.id}
    assert copy.name.startswith(successor.name)
    assert copy.name == f"{successor.name} (Copy)"
    assert copy.description == "quarterly"
    assert copy.branding == original.branding
    assert copy.admin_id == original.admin_id
    assert copy.questions == []
    assert copy.previous_version_id is None
    assert copy.status is SurveyStatus.CREATED
    assert copy.version == 1


def test_update_schedule_parses_and_validates(db, make_survey):
    survey = make_survey()
    with pytest.raises(ScheduleParseError):
        survey_service.update_schedule(
            db,
            survey_id=survey.id,
            scheduled_open="next monday",
            scheduled_close="2026-01-01T00:00:00Z",
        )
    with pytest.raises(InvalidArgumentError):
        survey_service.update_schedule(
            db,
            survey_id=survey.id,
            scheduled_open="2026-02-01T00:00:00Z",
            scheduled_close="2026-01-01T00:00:00Z",
        )

    updated = survey_service.update_schedule(
        db,
        survey_id=survey.id,
        scheduled_open="2026-01-01T00:00:00Z",
        scheduled_close="2026-02-01T00:00:00+09:00",
    )
    assert updated.scheduled_open.isoformat() == "2026-01-01T00:00:00+00:00"
    assert updated.scheduled_close.isoformat() == "2026-01-31T15:00:00+00:00"


def test_scheduled_close_applies_on_read(db, make_survey):
    survey = make_survey(name="CSAT")
    survey_service.publish_survey(db, survey_id=survey.id)
    now = utcnow()
    scheduled = survey_service.update_schedule(
        db,
        survey_id=survey.id,
        scheduled_open=_iso(now - timedelta(hours=1)),
        scheduled_close=_iso(now - timedelta(seconds=1)),
    )
    assert scheduled.status is SurveyStatus.PUBLISHED

    first = survey_service.get_survey(db, survey.id)
    second = survey_service.get_survey(db, survey.id)

    assert first.status is SurveyStatus.CLOSED
    assert second.status is SurveyStatus.CLOSED
    assert second.revision == first.revision


def test_scheduled_close_applies_to_list_and_search(db, make_survey):
    survey = make_survey(name="Expiring")
    survey_service.publish_survey(db, survey_id=survey.id)
    now = utcnow()
    survey_service.update_schedule(
        db,
        survey_id=survey.id,
        scheduled_open=_iso(now - timedelta(hours=1)),
        scheduled_close=_iso(now - timedelta(seconds=1)),
    )

    assert survey_service.list_surveys(db, status=SurveyStatus.PUBLISHED) == []
    assert [s.id for s in survey_service.list_surveys(db, status=SurveyStatus.CLOSED)] == [survey.id]
    assert survey_service.search_surveys(db, name="expiring")[0].status is SurveyStatus.CLOSED


def test_schedule_and_branding_rejected_once_closed(db, make_survey):
    survey = make_survey()
    survey_service.publish_survey(db, survey_id=survey.id)

    rebranded = survey_service.update_branding(
        db, survey_id=survey.id, branding=Branding(font="Pretendard")
    )
    assert rebranded.branding.font == "Pretendard"

    survey_service.close_survey(db, survey_id=survey.id)
    with pytest.raises(SurveyNotEditableError):
        survey_service.update_branding(db, survey_id=survey.id, branding=Branding(font="Other"))
    with pytest.raises(SurveyNotEditableError):
        survey_service.update_schedule(
            db,
            survey_id=survey.id,
            scheduled_open="2026-01-01T00:00:00Z",
            scheduled_close="2026-02-01T00:00:00Z",
        )


def test_update_branding_replaces_value(db, make_survey):
    survey = make_survey(branding=Branding(primary_color="#000", font="Serif"))
    updated = survey_service.update_branding(
        db, survey_id=survey.id, branding=Branding(logo_url="https://example.com/a.svg")
    )
    assert updated.branding == Branding(logo_url="https://example.com/a.svg")

    cleared = survey_service.update_branding(db, survey_id=survey.id, branding=None)
    assert cleared.branding is None


def test_question_operations_through_facade(db, make_survey):
    survey = make_survey()
    for text in ("A", "B", "C"):
        survey = survey_service.add_question(db, survey_id=survey.id, question=Question(text=text))
    assert [q.order for q in survey.questions] == [1, 2, 3]

    second = survey.questions[1]
    survey = survey_service.update_question(
        db,
        survey_id=survey.id,
        question_id=second.id,
        question=Question(text="B2", type="rating", required=True),
    )
    fetched = survey_service.get_question(db, survey_id=survey.id, question_id=second.id)
    assert fetched.text == "B2"
    assert fetched.order == 2

    survey = survey_service.remove_question(db, survey_id=survey.id, question_id=second.id)
    assert [q.text for q in survey_service.get_questions(db, survey_id=survey.id)] == ["A", "C"]

    with pytest.raises(QuestionNotFoundError):
        survey_service.remove_question(db, survey_id=survey.id, question_id=second.id)
    with pytest.raises(QuestionNotFoundError):
        survey_service.update_question(db, survey_id=survey.id, question_id="missing", question=Question(text="X"))
    with pytest.raises(QuestionNotFoundError):
        survey_service.get_question(db, survey_id=survey.id, question_id="missing")
    with pytest.raises(SurveyNotFoundError):
        survey_service.add_question(db, survey_id="missing", question=Question(text="X"))
    with pytest.raises(SurveyNotFoundError):
        survey_service.get_questions(db, survey_id="missing")


def test_questions_locked_after_publish(db, make_survey):
    survey = make_survey(questions=[Question(text="A")])
    survey_service.publish_survey(db, survey_id=survey.id)
    question_id = survey.questions[0].id

    with pytest.raises(SurveyNotEditableError):
        survey_service.add_question(db, survey_id=survey.id, question=Question(text="B"))
    with pytest.raises(SurveyNotEditableError):
        survey_service.update_question(db, survey_id=survey.id, question_id=question_id, question=Question(text="A2"))
    with pytest.raises(SurveyNotEditableError):
        survey_service.remove_question(db, survey_id=survey.id, question_id=question_id)
    assert len(survey_service.get_questions(db, survey_id=survey.id)) == 1


def test_version_history_through_facade(db, make_survey):
    root = make_survey(questions=[Question(text="A")])
    v2 = survey_service.create_new_version(db, survey_id=root.id)
    v3 = survey_service.create_new_version(db, survey_id=v2.id)

    history = survey_service.get_version_history(db, survey_id=v3.id)

    assert [s.id for s in history] == [v3.id, v2.id, root.id]
    assert [s.version for s in history] == [3, 2, 1]
    assert v3.questions == root.questions
    with pytest.raises(SurveyNotFoundError):
        survey_service.create_new_version(db, survey_id="missing")
