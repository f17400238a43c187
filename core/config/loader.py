"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import AppMode


@dataclass(frozen=True)
class AuthConfig:
    """인증 설정

    federated_secret이 비어 있으면 외부 제공자 로그인 비활성화.
    """

    federated_secret: str
    federated_issuer: str | None


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: AppMode
    web_secret_key: str
    token_ttl_minutes: int
    auth: AuthConfig
    amount_precision: Decimal
    optimistic_updates: bool
    slack_webhook_url: str | None
    database_path: Path | None = None


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def load_settings_file(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise ConfigLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("settings.yaml이 비어 있습니다")

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise ConfigLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    # Web 설정
    web_config = data.get("web") or {}
    web_secret_key = web_config.get("secret_key", "")
    if not web_secret_key:
        raise ConfigLoadError(
            "settings.yaml의 web 섹션에 'secret_key'가 없습니다"
        )

    token_ttl = web_config.get("token_ttl_minutes", Defaults.TOKEN_TTL_MINUTES)
    if not isinstance(token_ttl, int) or token_ttl <= 0:
        raise ConfigLoadError(
            f"web.token_ttl_minutes는 양의 정수여야 합니다: {token_ttl!r}"
        )

    # 인증 설정
    auth_config = data.get("auth") or {}
    auth = AuthConfig(
        federated_secret=auth_config.get("federated_secret", "") or "",
        federated_issuer=auth_config.get("federated_issuer"),
    )

    # Ledger 설정
    ledger_config = data.get("ledger") or {}
    precision_raw = ledger_config.get("amount_precision", str(Defaults.AMOUNT_PRECISION))
    try:
        amount_precision = Decimal(str(precision_raw))
    except InvalidOperation as e:
        raise ConfigLoadError(
            f"ledger.amount_precision 값이 잘못되었습니다: {precision_raw!r}"
        ) from e

    if amount_precision <= 0:
        raise ConfigLoadError("ledger.amount_precision은 0보다 커야 합니다")

    optimistic_updates = bool(ledger_config.get("optimistic_updates", False))

    # 알림 설정
    notifications = data.get("notifications") or {}
    slack_webhook_url = notifications.get("slack_webhook_url") or None

    # DB 경로 (지정 시 mode별 기본 경로 대신 사용)
    database_config = data.get("database") or {}
    database_path_raw = database_config.get("path")
    database_path = Path(database_path_raw) if database_path_raw else None

    return AppConfig(
        mode=mode,
        web_secret_key=web_secret_key,
        token_ttl_minutes=token_ttl,
        auth=auth,
        amount_precision=amount_precision,
        optimistic_updates=optimistic_updates,
        slack_webhook_url=slack_webhook_url,
        database_path=database_path,
    )


def get_db_path(config: AppConfig) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        config: AppConfig 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if config.database_path is not None:
        return config.database_path
    if config.mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_settings_file(settings_path)

    @property
    def config(self) -> AppConfig:
        """로드된 설정 전체"""
        assert self._config is not None
        return self._config

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        return self.config.mode

    @property
    def web_secret_key(self) -> str:
        """Web 세션 토큰 서명 키"""
        return self.config.web_secret_key

    @property
    def token_ttl_minutes(self) -> int:
        """세션 토큰 유효 시간 (분)"""
        return self.config.token_ttl_minutes

    @property
    def auth(self) -> AuthConfig:
        """인증 설정"""
        return self.config.auth

    @property
    def amount_precision(self) -> Decimal:
        """금액 정밀도"""
        return self.config.amount_precision

    @property
    def optimistic_updates(self) -> bool:
        """낙관적 로컬 반영 사용 여부"""
        return self.config.optimistic_updates

    @property
    def slack_webhook_url(self) -> str | None:
        """Slack Webhook URL (없으면 알림 비활성화)"""
        return self.config.slack_webhook_url

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        return get_db_path(self.config)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
