"""
Slack 알림 서비스

Slack Webhook을 통해 부분 쓰기 경고, 잔고 불일치 보고를 전송.
INotifier Protocol 준수.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

logger = logging.getLogger(__name__)


# 레벨별 이모지 매핑
LEVEL_EMOJI = {
    "INFO": ":white_check_mark:",
    "WARNING": ":warning:",
    "ERROR": ":x:",
    "CRITICAL": ":rotating_light:",
}

# 레벨별 색상 매핑 (Slack attachment color)
LEVEL_COLOR = {
    "INFO": "#36A64F",
    "WARNING": "#FFA500",
    "ERROR": "#FF0000",
    "CRITICAL": "#8B0000",
}


class SlackNotifier:
    """Slack 알림 서비스

    사용 예시:
    ```python
    async with SlackNotifier(webhook_url="https://hooks.slack.com/...") as notifier:
        await notifier.send(
            "Partial write detected",
            level="ERROR",
            extra={"operation_id": op_id, "applied": 1},
        )
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        username: str = "Money360",
        timeout: float = 10.0,
    ):
        """
        Args:
            webhook_url: Slack Incoming Webhook URL
            channel: 채널 오버라이드 (기본값은 Webhook 설정 사용)
            username: 메시지 발송자 이름
            timeout: HTTP 요청 타임아웃 (초)
        """
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.timeout = timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_payload(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Slack 페이로드 구성 (extra는 attachment fields로 표시)"""
        emoji = LEVEL_EMOJI.get(level, ":bell:")
        attachment: dict[str, Any] = {
            "color": LEVEL_COLOR.get(level, "#808080"),
            "text": f"{emoji} *[{level}]* {message}",
            "footer": f"Money360 | {datetime.now(timezone.utc):%Y-%m-%d %H:%M:%S} UTC",
        }

        if extra:
            attachment["fields"] = [
                {"title": key, "value": str(value), "short": True}
                for key, value in extra.items()
            ]

        payload: dict[str, Any] = {
            "username": self.username,
            "attachments": [attachment],
        }
        if self.channel:
            payload["channel"] = self.channel
        return payload

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Returns:
            전송 성공 여부 (실패해도 예외를 올리지 않음)
        """
        payload = self.build_payload(message, level, extra)

        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException:
            logger.error("Slack 알림 전송 타임아웃")
            return False
        except httpx.HTTPError as e:
            logger.error("Slack 알림 전송 HTTP 에러: %s", e)
            return False

        if response.status_code != 200:
            logger.warning(
                "Slack 알림 전송 실패: status=%s, body=%s",
                response.status_code,
                response.text,
            )
            return False

        logger.debug("Slack 알림 전송 성공")
        return True

    # -------------------------------------------------------------------------
    # Context Manager 지원
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SlackNotifier":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
