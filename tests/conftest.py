"""
pytest 공통 fixture 정의

설정 파일, 임시 디렉토리 등 전체 테스트에서 공유하는 fixture
"""

import tempfile
from pathlib import Path

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (임시 DB 경로 사용)"""
    db_path = (temp_dir / "money360_test.db").as_posix()
    settings_content = f"""# 테스트용 settings.yaml
mode: development

web:
  secret_key: "test_jwt_secret_key_xyz_0123456789abcdef"
  token_ttl_minutes: 30

auth:
  federated_secret: "test_federated_secret_0123456789abcdef"
  federated_issuer: "https://id.example.com"

ledger:
  amount_precision: "0.01"
  optimistic_updates: false

notifications:
  slack_webhook_url: null

database:
  path: "{db_path}"
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_production(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (production 모드, DB 경로 미지정)"""
    settings_content = """mode: production

web:
  secret_key: "prod_jwt_secret_key_xyz"

ledger:
  amount_precision: "1"
  optimistic_updates: true

notifications:
  slack_webhook_url: "https://hooks.slack.com/services/T000/B000/XXXX"
"""
    settings_path = temp_dir / "settings_prod.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    settings_content = """mode: invalid_mode

web:
  secret_key: "jwt_secret"
"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def reset_settings() -> None:
    """Settings 싱글턴 초기화 (테스트 전후)"""
    Settings.reset()
    yield
    Settings.reset()
