"""
잔고 불일치 점검

계좌별로 opening_balance + Σ(거래 효과)와 저장된 balance를 비교.
감지만 하고 수정하지 않는다.

사용법:
    python -m scripts.check_drift --mode development
    python -m scripts.check_drift --uid <user id> --notify
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, db_path_for_mode
from adapters.slack.notifier import SlackNotifier
from adapters.store.sqlite_store import SQLiteLedgerStore
from core.config.loader import ConfigLoadError, get_settings
from core.logging import setup_logging
from core.types import Collection
from engine.mirror.local_mirror import LocalMirror
from engine.reconciler.drift import BalanceDrift, DriftDetector

logger = logging.getLogger(__name__)


async def load_mirror(db: SQLiteAdapter, uid: str) -> LocalMirror:
    """사용자 저장소 전체를 Local Mirror로 로드"""
    store = SQLiteLedgerStore(db, uid)
    mirror = LocalMirror()

    for collection in Collection:
        subscription = await store.subscribe(
            collection.value,
            mirror.snapshot_callback(collection.value),
        )
        subscription.cancel()

    return mirror


async def check_user(db: SQLiteAdapter, uid: str) -> list[BalanceDrift]:
    """사용자 한 명의 불일치 계좌 목록"""
    mirror = await load_mirror(db, uid)
    return DriftDetector().detect(mirror.snapshot())


async def list_user_ids(db: SQLiteAdapter) -> list[str]:
    """계좌를 가진 사용자 ID 목록"""
    rows = await db.fetchall("SELECT DISTINCT user_id FROM accounts ORDER BY user_id")
    return [row[0] for row in rows]


async def main(db_path: Path, uid: str | None, webhook_url: str | None) -> int:
    """점검 실행

    Returns:
        종료 코드 (불일치 있으면 1)
    """
    async with SQLiteAdapter(db_path, readonly=True) as db:
        user_ids = [uid] if uid else await list_user_ids(db)

        report: dict[str, list[BalanceDrift]] = {}
        for user_id in user_ids:
            drifts = await check_user(db, user_id)
            if drifts:
                report[user_id] = drifts

    logger.info(
        f"Drift check finished: {len(user_ids)} user(s), {len(report)} with drift",
        extra={"db_path": str(db_path)},
    )

    for user_id, drifts in report.items():
        for d in drifts:
            print(
                f"{user_id}  {d.account_id}  {d.account_name}: "
                f"expected={d.expected} actual={d.actual} diff={d.difference}"
            )

    if report and webhook_url:
        async with SlackNotifier(webhook_url) as notifier:
            await notifier.send(
                f"Balance drift detected for {len(report)} user(s)",
                level="WARNING",
                extra={
                    user_id: ", ".join(f"{d.account_name} {d.difference}" for d in drifts)
                    for user_id, drifts in report.items()
                },
            )

    return 1 if report else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="계좌 잔고 불일치 점검")
    parser.add_argument(
        "--mode",
        choices=["development", "production"],
        default=None,
        help="DB 선택 (미지정 시 settings.yaml 기준)",
    )
    parser.add_argument("--uid", default=None, help="특정 사용자만 점검")
    parser.add_argument("--notify", action="store_true", help="불일치 시 Slack 알림")
    args = parser.parse_args()

    setup_logging("scripts")

    webhook_url = None
    try:
        settings = get_settings()
        db_path = db_path_for_mode(args.mode) if args.mode else settings.db_path
        webhook_url = settings.slack_webhook_url if args.notify else None
    except ConfigLoadError as e:
        if args.mode is None:
            parser.error(f"{e} (--mode로 DB를 지정하세요)")
        db_path = db_path_for_mode(args.mode)

    sys.exit(asyncio.run(main(db_path, args.uid, webhook_url)))
