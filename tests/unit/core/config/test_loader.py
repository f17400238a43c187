"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, DB 경로 선택 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    AppConfig,
    AuthConfig,
    ConfigLoadError,
    Settings,
    get_db_path,
    get_settings,
    load_settings_file,
)
from core.constants import Paths
from core.types import AppMode


def _config(mode: AppMode, database_path: Path | None = None) -> AppConfig:
    return AppConfig(
        mode=mode,
        web_secret_key="secret",
        token_ttl_minutes=60,
        auth=AuthConfig(federated_secret="", federated_issuer=None),
        amount_precision=Decimal("0.01"),
        optimistic_updates=False,
        slack_webhook_url=None,
        database_path=database_path,
    )


class TestAppConfig:
    """AppConfig 데이터클래스 테스트"""

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = _config(AppMode.DEVELOPMENT)

        with pytest.raises(AttributeError):
            config.web_secret_key = "new"  # type: ignore


class TestLoadSettingsFile:
    """load_settings_file 함수 테스트"""

    def test_load_development(self, temp_settings_file: Path) -> None:
        """개발 모드 설정 로드"""
        config = load_settings_file(temp_settings_file)

        assert config.mode == AppMode.DEVELOPMENT
        assert config.web_secret_key == "test_jwt_secret_key_xyz_0123456789abcdef"
        assert config.token_ttl_minutes == 30
        assert config.auth.federated_secret == "test_federated_secret_0123456789abcdef"
        assert config.auth.federated_issuer == "https://id.example.com"
        assert config.amount_precision == Decimal("0.01")
        assert config.optimistic_updates is False
        assert config.slack_webhook_url is None
        assert config.database_path is not None
        assert config.database_path.name == "money360_test.db"

    def test_load_production(self, temp_settings_file_production: Path) -> None:
        """운영 모드 설정 로드 (선택 항목 기본값 포함)"""
        config = load_settings_file(temp_settings_file_production)

        assert config.mode == AppMode.PRODUCTION
        assert config.amount_precision == Decimal("1")
        assert config.optimistic_updates is True
        assert config.slack_webhook_url.startswith("https://hooks.slack.com/")
        assert config.auth.federated_secret == ""
        assert config.auth.federated_issuer is None
        assert config.database_path is None
        assert config.token_ttl_minutes == 60 * 24

    def test_file_not_found(self, temp_dir: Path) -> None:
        """파일 없음"""
        with pytest.raises(ConfigLoadError, match="찾을 수 없습니다"):
            load_settings_file(temp_dir / "missing.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        """빈 파일"""
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="비어 있습니다"):
            load_settings_file(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """YAML 파싱 실패"""
        path = temp_dir / "broken.yaml"
        path.write_text("mode: [development\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_settings_file(path)

    def test_missing_mode(self, temp_dir: Path) -> None:
        """mode 누락"""
        path = temp_dir / "no_mode.yaml"
        path.write_text("web:\n  secret_key: x\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="mode"):
            load_settings_file(path)

    def test_invalid_mode(self, temp_settings_file_invalid_mode: Path) -> None:
        """유효하지 않은 mode"""
        with pytest.raises(ValueError, match="유효하지 않은 mode"):
            load_settings_file(temp_settings_file_invalid_mode)

    def test_missing_secret_key(self, temp_dir: Path) -> None:
        """web.secret_key 누락"""
        path = temp_dir / "no_secret.yaml"
        path.write_text("mode: development\nweb: {}\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="secret_key"):
            load_settings_file(path)

    def test_invalid_token_ttl(self, temp_dir: Path) -> None:
        """토큰 유효 시간이 양의 정수가 아님"""
        path = temp_dir / "bad_ttl.yaml"
        path.write_text(
            "mode: development\nweb:\n  secret_key: x\n  token_ttl_minutes: 0\n",
            encoding="utf-8",
        )

        with pytest.raises(ConfigLoadError, match="token_ttl_minutes"):
            load_settings_file(path)

    @pytest.mark.parametrize("precision", ["abc", "0", "-0.01"])
    def test_invalid_precision(self, temp_dir: Path, precision: str) -> None:
        """잘못된 금액 정밀도"""
        path = temp_dir / "bad_precision.yaml"
        path.write_text(
            "mode: development\nweb:\n  secret_key: x\n"
            f"ledger:\n  amount_precision: \"{precision}\"\n",
            encoding="utf-8",
        )

        with pytest.raises(ConfigLoadError, match="amount_precision"):
            load_settings_file(path)


class TestGetDbPath:
    """get_db_path 함수 테스트"""

    def test_development(self) -> None:
        assert get_db_path(_config(AppMode.DEVELOPMENT)) == Paths.DEV_DB

    def test_production(self) -> None:
        assert get_db_path(_config(AppMode.PRODUCTION)) == Paths.PROD_DB

    def test_explicit_path_overrides_mode(self, temp_dir: Path) -> None:
        """database.path 지정 시 우선"""
        path = temp_dir / "custom.db"

        assert get_db_path(_config(AppMode.PRODUCTION, path)) == path


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_settings_file: Path, reset_settings: None) -> None:
        """같은 인스턴스 반환"""
        first = get_settings(temp_settings_file)
        second = get_settings()

        assert first is second

    def test_properties(self, temp_settings_file: Path, reset_settings: None) -> None:
        """프로퍼티 위임"""
        settings = Settings(temp_settings_file)

        assert settings.mode == AppMode.DEVELOPMENT
        assert settings.web_secret_key == "test_jwt_secret_key_xyz_0123456789abcdef"
        assert settings.token_ttl_minutes == 30
        assert settings.amount_precision == Decimal("0.01")
        assert settings.optimistic_updates is False
        assert settings.slack_webhook_url is None
        assert settings.db_path == settings.config.database_path

    def test_reset(
        self,
        temp_settings_file: Path,
        temp_settings_file_production: Path,
        reset_settings: None,
    ) -> None:
        """reset 후 다른 파일 로드"""
        assert get_settings(temp_settings_file).mode == AppMode.DEVELOPMENT

        Settings.reset()

        assert get_settings(temp_settings_file_production).mode == AppMode.PRODUCTION
