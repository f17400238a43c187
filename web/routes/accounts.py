"""
계좌 라우트

GET    /api/accounts                  - 계좌 목록
POST   /api/accounts                  - 계좌 생성
PATCH  /api/accounts/{id}             - 이름/유형/색상 수정 (잔고 불변)
POST   /api/accounts/{id}/balance     - 잔고 수동 보정
DELETE /api/accounts/{id}?force=true  - 계좌 삭제
"""

from fastapi import APIRouter, Depends, Query, status

from engine.projector.view_projection import project
from engine.session import SessionContext
from web.dependencies import get_session
from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BalanceCorrectionRequest,
)
from web.models.responses import AccountResponse, CreatedResponse
from web.services.view_service import account_response

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountResponse])
async def list_accounts(
    ctx: SessionContext = Depends(get_session),
) -> list[AccountResponse]:
    view = project(ctx.mirror.snapshot())
    return [account_response(row) for row in view.account_rows]


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreateRequest,
    ctx: SessionContext = Depends(get_session),
) -> CreatedResponse:
    account_id = await ctx.accounts.create_account(
        name=body.name,
        type=body.type,
        balance=body.balance,
        color=body.color,
    )
    return CreatedResponse(id=account_id)


@router.patch("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    ctx: SessionContext = Depends(get_session),
) -> None:
    await ctx.accounts.update_account(
        account_id,
        name=body.name,
        type=body.type,
        color=body.color,
    )


@router.post("/{account_id}/balance")
async def correct_balance(
    account_id: str,
    body: BalanceCorrectionRequest,
    ctx: SessionContext = Depends(get_session),
) -> dict[str, str]:
    difference = await ctx.accounts.correct_balance(account_id, body.balance)
    return {"id": account_id, "difference": str(difference)}


@router.delete("/{account_id}")
async def delete_account(
    account_id: str,
    force: bool = Query(default=False),
    ctx: SessionContext = Depends(get_session),
) -> dict[str, str | int]:
    orphaned = await ctx.accounts.delete_account(account_id, force=force)
    return {"id": account_id, "orphaned_transactions": orphaned}
