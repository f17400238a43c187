"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 정밀도 보존을 위해 문자열로 반환.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str = Field(..., description="API 버전")
    active_sessions: int = Field(default=0, description="로그인 세션 수")


class TokenResponse(BaseModel):
    """로그인 응답"""

    access_token: str
    token_type: str = "bearer"
    uid: str
    email: str | None = None
    display_name: str | None = None


class AccountResponse(BaseModel):
    """계좌 응답"""

    id: str
    name: str
    type: str
    type_label: str
    balance: str
    color: str
    transaction_count: int = 0


class CategoryResponse(BaseModel):
    """카테고리 응답"""

    id: str
    name: str
    type: str
    color: str


class TransactionResponse(BaseModel):
    """거래 목록 행 응답 (참조 누락 시 기본 라벨)"""

    id: str
    date: str
    type: str
    amount: str
    signed_amount: str | None = None
    description: str
    account_label: str
    category_label: str
    color: str


class CreatedResponse(BaseModel):
    """생성 응답"""

    id: str


class CommandResponse(BaseModel):
    """거래 명령 처리 결과"""

    operation_id: str
    transaction_id: str
    state: str
    deltas: dict[str, str] = Field(default_factory=dict, description="계좌별 잔고 변화량")
    warnings: list[str] = Field(default_factory=list)


class DailyPointResponse(BaseModel):
    date: str
    income: str
    expense: str
    net: str


class BalancePointResponse(BaseModel):
    date: str
    balance: str


class CategoryBreakdownResponse(BaseModel):
    category_id: str
    name: str
    color: str
    amount: str


class DashboardResponse(BaseModel):
    """대시보드 응답"""

    total_balance: str
    period_income: str
    period_expense: str
    expense_by_category: dict[str, str]
    daily_series: list[DailyPointResponse]
    recent_series: list[DailyPointResponse]
    expense_breakdown: list[CategoryBreakdownResponse]
    balance_trend: list[BalancePointResponse]
    accounts: list[AccountResponse]
    recent_transactions: list[TransactionResponse]


class DriftResponse(BaseModel):
    """잔고 불일치 응답"""

    account_id: str
    account_name: str
    expected: str
    actual: str
    difference: str


class ErrorResponse(BaseModel):
    """오류 응답"""

    detail: str
    field: str | None = None
