"""
core/types.py 테스트

모든 Enum이 문자열 직렬화 가능한지 확인
"""

import pytest

from core.types import (
    AccountType,
    AppMode,
    CategoryType,
    Collection,
    OperationKind,
    TransactionType,
)


class TestAppMode:
    """AppMode 테스트"""

    def test_values(self) -> None:
        """값 확인"""
        assert AppMode.DEVELOPMENT.value == "development"
        assert AppMode.PRODUCTION.value == "production"

    def test_from_string(self) -> None:
        """문자열에서 생성"""
        assert AppMode("production") is AppMode.PRODUCTION


class TestAccountType:
    """AccountType 테스트"""

    def test_values(self) -> None:
        assert {t.value for t in AccountType} == {"cash", "bank", "credit", "saving"}

    def test_invalid_value(self) -> None:
        with pytest.raises(ValueError):
            AccountType("savings_plus")


class TestTransactionType:
    """TransactionType 테스트"""

    def test_values(self) -> None:
        assert {t.value for t in TransactionType} == {"income", "expense", "transfer"}

    def test_str_comparison(self) -> None:
        """str 상속으로 문자열과 직접 비교 가능"""
        assert TransactionType.TRANSFER == "transfer"


class TestCategoryType:
    """CategoryType 테스트"""

    def test_no_transfer_category(self) -> None:
        """이체는 카테고리 유형이 아님"""
        assert {t.value for t in CategoryType} == {"income", "expense"}


class TestCollection:
    """Collection 테스트"""

    def test_values(self) -> None:
        assert [c.value for c in Collection] == ["accounts", "categories", "transactions"]


class TestOperationKind:
    """OperationKind 테스트"""

    def test_values(self) -> None:
        assert {k.value for k in OperationKind} == {"create", "edit", "delete"}
