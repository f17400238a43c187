"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액 검증(양수, 정밀도)은 Command Processor가 담당하므로 여기서는 형식만 확인.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """이메일/비밀번호 가입 및 로그인 요청"""

    email: str = Field(..., description="이메일")
    password: str = Field(..., description="비밀번호")


class FederatedSignInRequest(BaseModel):
    """외부 제공자 로그인 요청"""

    id_token: str = Field(..., description="외부 제공자 ID 토큰 (HS256 JWT)")


class AccountCreateRequest(BaseModel):
    """계좌 생성 요청"""

    name: str = Field(..., description="계좌 이름")
    type: str = Field(default="cash", description="cash / bank / credit / saving")
    balance: Decimal = Field(default=Decimal("0"), description="초기 잔고 (음수 허용)")
    color: str | None = Field(default=None, description="표시 색상")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Wallet", "type": "cash", "balance": "150.00", "color": "#10B981"},
            ]
        }
    }


class AccountUpdateRequest(BaseModel):
    """계좌 정보 수정 요청 (잔고 제외)"""

    name: str | None = None
    type: str | None = None
    color: str | None = None


class BalanceCorrectionRequest(BaseModel):
    """잔고 수동 보정 요청"""

    balance: Decimal = Field(..., description="보정 후 잔고")


class CategoryCreateRequest(BaseModel):
    """카테고리 생성 요청"""

    name: str = Field(..., description="카테고리 이름")
    type: str = Field(..., description="income / expense")
    color: str | None = Field(default=None, description="표시 색상")


class CategoryUpdateRequest(BaseModel):
    """카테고리 수정 요청"""

    name: str | None = None
    type: str | None = None
    color: str | None = None


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청

    - income / expense: account_id (+ category_id)
    - transfer: from_account_id, to_account_id ("external" 허용)
    """

    type: str = Field(..., description="income / expense / transfer")
    amount: Decimal = Field(..., description="금액 (양수)")
    date: dt.date = Field(..., description="거래일")
    description: str = Field(default="", description="메모")
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    confirm_overdraft: bool = Field(default=False, description="잔고 부족 이체 확인")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "expense",
                    "amount": "20.00",
                    "date": "2024-05-01",
                    "description": "Lunch",
                    "account_id": "<account id>",
                    "category_id": "<category id>",
                },
                {
                    "type": "transfer",
                    "amount": "30.00",
                    "date": "2024-05-02",
                    "from_account_id": "<account id>",
                    "to_account_id": "external",
                },
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청 (지정한 필드만 변경)"""

    type: str | None = None
    amount: Decimal | None = None
    date: dt.date | None = None
    description: str | None = None
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    confirm_overdraft: bool = False
