"""Operator alert sinks: log-only and webhook with exponential backoff"""

import asyncio
import logging

import httpx

from subsgrow_core.config import settings
from subsgrow_core.infrastructure.observability.metrics import alert_failure_counter

logger = logging.getLogger(__name__)


class LoggingAlertSink:
    """Writes operator alerts to the log only"""

    async def notify(self, message: str, level: str = "info") -> None:
        logger.info(message, extra={"step": "operator_alert", "alert_level": level})


class WebhookAlertSink:
    """Posts operator alerts to a webhook; never raises"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.alert_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def notify(self, message: str, level: str = "info") -> None:
        """
        Deliver an alert with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base ...
        - Retries on 5xx/4xx responses and network failures
        - Gives up silently after max_retries (alerts are best-effort)
        """
        if not self.webhook_url:
            logger.debug("No alert webhook configured, dropping alert")
            return

        payload = {"message": message, "level": level, "service": settings.service_name}
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    response = await client.post(self.webhook_url, json=payload)
                    response.raise_for_status()
                    return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    alert_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.warning(
                            f"Alert delivery failed after {attempt} attempts: {e}",
                            extra={"step": "operator_alert"},
                        )
                        return

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
