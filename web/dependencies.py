"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
세션 토큰은 web.secret_key로 서명한 HS256 JWT.
"""

from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config.loader import Settings, get_settings
from core.errors import AuthError
from engine.session import SessionContext
from web.sessions import SessionRegistry

TOKEN_ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False)


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


def get_registry(request: Request) -> SessionRegistry:
    """앱 세션 레지스트리 반환 (lifespan에서 생성)"""
    return request.app.state.sessions


# =========================================================================
# 세션 토큰
# =========================================================================


def create_access_token(uid: str, settings: Settings) -> str:
    """세션 토큰 발급"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": uid,
        "iat": now,
        "exp": now + timedelta(minutes=settings.token_ttl_minutes),
    }
    return jwt.encode(payload, settings.web_secret_key, algorithm=TOKEN_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    """세션 토큰 검증

    Returns:
        uid

    Raises:
        AuthError: 만료 또는 서명 불일치
    """
    try:
        payload = jwt.decode(
            token,
            settings.web_secret_key,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Session token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid session token: {e}") from e
    return str(payload["sub"])


def get_current_uid(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Bearer 토큰에서 uid 추출"""
    if credentials is None:
        raise AuthError("Missing bearer token")
    return decode_access_token(credentials.credentials, settings)


def get_session(
    uid: str = Depends(get_current_uid),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionContext:
    """로그인 세션 컨텍스트 반환

    서버 재시작 등으로 세션이 없으면 다시 로그인해야 한다.
    """
    context = registry.get(uid)
    if context is None:
        raise AuthError("Session not found, sign in again")
    return context
