"""설문 버전 체인(이전 버전 역참조) 생성/조회 도메인 서비스입니다."""

import logging
from typing import List

from sqlalchemy.orm import Session

from survey_lifecycle.config import settings
from survey_lifecycle.errors import CorruptChainError, SurveyNotFoundError
from survey_lifecycle.models.survey import SurveyStatus
from survey_lifecycle.schemas.survey import Survey
from survey_lifecycle.services import survey_store
from survey_lifecycle.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def create_new_version(db: Session, original: Survey) -> Survey:
    now = utcnow()
    new_version = Survey(
        name=f"{original.name}{settings.NEW_VERSION_SUFFIX}",
        description=original.description,
        version=int(original.version or 1) + 1,
        status=SurveyStatus.CREATED,
        created_at=now,
        modified_at=now,
        is_template=False,
        admin_id=original.admin_id,
        branding=original.branding.model_copy() if original.branding else None,
        previous_version_id=original.id,
        questions=[q.model_copy(deep=True) for q in original.questions],
    )
    saved = survey_store.put(db, new_version)
    logger.info(
        "[version] new version created: survey_id=%s previous_version_id=%s version=%s",
        saved.id,
        original.id,
        saved.version,
    )
    return saved


def get_version_history(db: Session, survey_id: str) -> List[Survey]:
    """시작 버전부터 루트까지 역순으로 따라간 체인을 반환한다."""
    start = survey_store.get(db, survey_id)
    if start is None:
        raise SurveyNotFoundError()

    versions: List[Survey] = []
    visited: set[str] = set()
    current = start
    while current is not None:
        if current.id in visited:
            logger.warning("[version] cycle detected in version chain: start=%s at=%s", survey_id, current.id)
            raise CorruptChainError(f"버전 이력에 순환 참조가 있습니다: {current.id}")
        visited.add(current.id)
        versions.append(current)
        if not current.previous_version_id:
            break
        current = survey_store.get(db, current.previous_version_id)
    return versions
