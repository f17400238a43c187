"""
카테고리 라우트

GET    /api/categories        - 카테고리 목록
POST   /api/categories        - 카테고리 생성
PATCH  /api/categories/{id}   - 카테고리 수정
DELETE /api/categories/{id}   - 카테고리 삭제 (거래에 전파하지 않음)
"""

from fastapi import APIRouter, Depends, Query, status

from engine.session import SessionContext
from web.dependencies import get_session
from web.models.requests import CategoryCreateRequest, CategoryUpdateRequest
from web.models.responses import CategoryResponse, CreatedResponse
from web.services.view_service import category_response

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    type: str | None = Query(default=None, description="income / expense"),
    ctx: SessionContext = Depends(get_session),
) -> list[CategoryResponse]:
    return [
        category_response(c)
        for c in ctx.mirror.categories
        if type is None or c.type == type
    ]


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreateRequest,
    ctx: SessionContext = Depends(get_session),
) -> CreatedResponse:
    category_id = await ctx.categories.create_category(
        name=body.name,
        type=body.type,
        color=body.color,
    )
    return CreatedResponse(id=category_id)


@router.patch("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    ctx: SessionContext = Depends(get_session),
) -> None:
    await ctx.categories.update_category(
        category_id,
        name=body.name,
        type=body.type,
        color=body.color,
    )


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    ctx: SessionContext = Depends(get_session),
) -> None:
    await ctx.categories.delete_category(category_id)
