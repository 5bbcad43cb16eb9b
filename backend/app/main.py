import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import install_error_handlers
from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.database import engine
from app.core.telemetry import instrument_fastapi, setup_telemetry

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """애플리케이션 라이프사이클"""
    # 시작 시: Telemetry 초기화
    if settings.telemetry_enabled:
        setup_telemetry("bookcrush-backend", "0.1.0")
    yield
    # 종료 시
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="BookCrush - Book club suggestion & voting API",
    lifespan=lifespan,
)

# OpenTelemetry FastAPI 계측
if settings.telemetry_enabled:
    instrument_fastapi(app)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 전역 에러 핸들러
install_error_handlers(app)

# API 라우터 등록
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict:
    """헬스 체크"""
    return {"status": "ok"}
