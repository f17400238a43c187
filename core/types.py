"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (개발 / 운영)"""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class AccountType(str, Enum):
    """계좌 유형"""

    CASH = "cash"
    BANK = "bank"
    CREDIT = "credit"
    SAVING = "saving"


class CategoryType(str, Enum):
    """카테고리 유형"""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionType(str, Enum):
    """거래 유형

    금액은 항상 양수이고 부호는 유형으로 결정됨.
    """

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Collection(str, Enum):
    """Ledger Store 컬렉션 (사용자 단위로 격리)"""

    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    TRANSACTIONS = "transactions"


class OperationKind(str, Enum):
    """Command Processor 논리 연산 종류"""

    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
