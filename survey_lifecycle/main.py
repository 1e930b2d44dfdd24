"""FastAPI 애플리케이션 진입점. 미들웨어, API 라우터, 도메인 예외 핸들러를 등록합니다."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from survey_lifecycle.config import settings
from survey_lifecycle.database import Base, engine
from survey_lifecycle.errors import SurveyLifecycleError
import survey_lifecycle.models  # noqa: F401 - 모델 import로 metadata 등록
from survey_lifecycle.routers import surveys

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Survey Lifecycle Service",
    description="설문 생성/편집/공개/마감/버전 관리를 담당하는 서비스",
    version="1.0.0",
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(surveys.router)


@app.exception_handler(SurveyLifecycleError)
async def handle_survey_lifecycle_error(request: Request, exc: SurveyLifecycleError):
    if exc.status_code >= 500:
        logger.error("[survey] %s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.detail},
    )


@app.on_event("startup")
def ensure_schema():
    # 누락된 테이블을 자동 생성합니다.
    Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Survey Lifecycle Service"}
