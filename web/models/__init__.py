"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BalanceCorrectionRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CredentialsRequest,
    FederatedSignInRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    AccountResponse,
    CategoryResponse,
    CommandResponse,
    CreatedResponse,
    DashboardResponse,
    DriftResponse,
    ErrorResponse,
    HealthResponse,
    TokenResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "BalanceCorrectionRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CredentialsRequest",
    "FederatedSignInRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    # Responses
    "AccountResponse",
    "CategoryResponse",
    "CommandResponse",
    "CreatedResponse",
    "DashboardResponse",
    "DriftResponse",
    "ErrorResponse",
    "HealthResponse",
    "TokenResponse",
    "TransactionResponse",
]
