"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → money360/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Endpoints:
    """이체 가상 상대방

    추적 대상 밖으로 돈이 들어오거나 나가는 경우에 사용.
    """

    EXTERNAL: str = "external"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    AMOUNT_PRECISION: Decimal = Decimal("0.01")
    TOKEN_TTL_MINUTES: int = 60 * 24

    # 대시보드 현금 흐름 차트에 표시할 최근 일수
    RECENT_DAYS: int = 7

    ACCOUNT_COLOR: str = "#3B82F6"
    CATEGORY_COLOR: str = "#555555"


class Labels:
    """참조 누락 시 표시용 기본 라벨"""

    UNCATEGORIZED_ID: str = "uncategorized"
    UNCATEGORIZED: str = "Uncategorized"
    DELETED_ACCOUNT: str = "Deleted account"
    EXTERNAL: str = "External"
    TRANSFER: str = "Transfer"

    ACCOUNT_TYPES: dict[str, str] = {
        "cash": "Cash",
        "bank": "Bank",
        "credit": "Credit card",
        "saving": "Savings",
    }


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    SCRIPT_LOGS_DIR: Path = LOGS_DIR / "scripts"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "money360_prod.db"
    DEV_DB: Path = DATA_DIR / "money360_dev.db"
