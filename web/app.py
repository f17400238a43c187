"""
FastAPI 애플리케이션

라우터 등록, 오류 매핑, 앱 생명주기(DB 연결, 세션 레지스트리) 관리.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.slack.notifier import SlackNotifier
from core.config.loader import get_settings
from core.errors import (
    AuthError,
    ConfirmationRequired,
    NotFoundError,
    StoreWriteError,
    ValidationError,
)
from core.logging import setup_logging
from web.routes import accounts, auth, categories, dashboard, health, transactions
from web.sessions import SessionRegistry

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """앱 생명주기 관리"""
    settings = get_settings()

    # 시작 시 - DB 연결 및 스키마 자동 초기화
    db = SQLiteAdapter(settings.db_path)
    await db.connect()
    await init_schema(db)

    notifier = (
        SlackNotifier(settings.slack_webhook_url)
        if settings.slack_webhook_url
        else None
    )

    app.state.sessions = SessionRegistry(db, settings, notifier=notifier)
    logger.info("Web started", extra={"mode": settings.mode.value})

    yield

    # 종료 시 - 세션 정리 후 리소스 해제
    await app.state.sessions.close_all()
    if notifier is not None:
        await notifier.close()
    await db.close()
    logger.info("Web stopped")


app = FastAPI(
    title="Money360 API",
    description="개인 가계부 잔고 정합성 엔진 API",
    version=health.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 오류 매핑
# =========================================================================


def _error(status_code: int, message: str, field: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "field": field},
    )


@app.exception_handler(ConfirmationRequired)
async def confirmation_required_handler(
    request: Request, exc: ConfirmationRequired
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": exc.message,
            "field": exc.field,
            "account_id": exc.account_id,
            "balance": str(exc.balance),
            "amount": str(exc.amount),
            "confirm_with": "confirm_overdraft",
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, exc.message, exc.field)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, exc.message, exc.field)


@app.exception_handler(StoreWriteError)
async def store_write_error_handler(request: Request, exc: StoreWriteError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "detail": exc.message,
            "operation_id": exc.operation_id,
            "partial": exc.partial,
        },
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(categories.router)
app.include_router(transactions.router)
app.include_router(dashboard.router)
