"""
거래 라우트

GET    /api/transactions        - 거래 목록 (created_at 내림차순)
POST   /api/transactions        - 거래 생성
PATCH  /api/transactions/{id}   - 거래 수정 (지정 필드만)
DELETE /api/transactions/{id}   - 거래 삭제
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from engine.command.models import TransactionRequest
from engine.projector.view_projection import project
from engine.session import SessionContext
from web.dependencies import get_session
from web.models.requests import TransactionCreateRequest, TransactionUpdateRequest
from web.models.responses import CommandResponse, TransactionResponse
from web.services.view_service import command_response, transaction_response

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    ctx: SessionContext = Depends(get_session),
) -> list[TransactionResponse]:
    view = project(ctx.mirror.snapshot(), start=start, end=end)
    rows = view.transaction_rows[offset:offset + limit]
    return [transaction_response(row) for row in rows]


@router.post("", response_model=CommandResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreateRequest,
    ctx: SessionContext = Depends(get_session),
) -> CommandResponse:
    request = TransactionRequest(
        type=body.type,
        amount=body.amount,
        date=body.date,
        description=body.description,
        account_id=body.account_id,
        category_id=body.category_id,
        from_account_id=body.from_account_id,
        to_account_id=body.to_account_id,
    )
    result = await ctx.processor.create(request, confirm_overdraft=body.confirm_overdraft)
    return command_response(result)


@router.patch("/{transaction_id}", response_model=CommandResponse)
async def edit_transaction(
    transaction_id: str,
    body: TransactionUpdateRequest,
    ctx: SessionContext = Depends(get_session),
) -> CommandResponse:
    changes = body.model_dump(exclude_unset=True, exclude={"confirm_overdraft"})
    result = await ctx.processor.edit(
        transaction_id,
        changes,
        confirm_overdraft=body.confirm_overdraft,
    )
    return command_response(result)


@router.delete("/{transaction_id}", response_model=CommandResponse)
async def delete_transaction(
    transaction_id: str,
    ctx: SessionContext = Depends(get_session),
) -> CommandResponse:
    result = await ctx.processor.delete(transaction_id)
    return command_response(result)
