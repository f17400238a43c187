"""
인증 라우트

POST /api/auth/sign-up    - 이메일/비밀번호 가입
POST /api/auth/sign-in    - 이메일/비밀번호 로그인
POST /api/auth/federated  - 외부 제공자 ID 토큰 로그인
POST /api/auth/sign-out   - 로그아웃 (구독 해제, Mirror 비움)
"""

from fastapi import APIRouter, Depends, status

from adapters.models import AuthUser
from core.config.loader import Settings
from web.dependencies import (
    create_access_token,
    get_app_settings,
    get_current_uid,
    get_registry,
)
from web.models.requests import CredentialsRequest, FederatedSignInRequest
from web.models.responses import TokenResponse
from web.sessions import SessionRegistry

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: AuthUser, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.uid, settings),
        uid=user.uid,
        email=user.email,
        display_name=user.display_name,
    )


@router.post("/sign-up", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    body: CredentialsRequest,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    user = await registry.sign_up(body.email, body.password)
    return _token_response(user, settings)


@router.post("/sign-in", response_model=TokenResponse)
async def sign_in(
    body: CredentialsRequest,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    user = await registry.sign_in(body.email, body.password)
    return _token_response(user, settings)


@router.post("/federated", response_model=TokenResponse)
async def sign_in_federated(
    body: FederatedSignInRequest,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    user = await registry.sign_in_federated(body.id_token)
    return _token_response(user, settings)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    uid: str = Depends(get_current_uid),
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    await registry.sign_out(uid)
