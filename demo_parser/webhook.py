import json
import logging

import requests

from demo_parser.config import DEFAULT_WEBHOOK_TIMEOUT, ParserConfig
from demo_parser.errors import DeliveryError
from demo_parser.services.result import DemoResult

logger = logging.getLogger(__name__)


class WebhookClient:
    def __init__(
        self,
        url: str,
        secret: str,
        timeout: int = DEFAULT_WEBHOOK_TIMEOUT,
        session: requests.Session | None = None,
    ):
        if not url:
            raise DeliveryError("WEBHOOK_URL is not set")
        if not secret:
            raise DeliveryError("WEBHOOK_SECRET is not set")
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {secret}",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: ParserConfig) -> "WebhookClient":
        return cls(config.webhook_url, config.webhook_secret, timeout=config.webhook_timeout)

    def deliver(self, result: DemoResult) -> None:
        body = json.dumps(result.to_payload(), ensure_ascii=False).encode("utf-8")
        try:
            r = self.session.post(self.url, data=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DeliveryError(f"webhook request failed: {exc}") from exc
        if not 200 <= r.status_code < 300:
            raise DeliveryError(
                f"webhook returned status {r.status_code}: {r.text}",
                status_code=r.status_code,
            )
        logger.info("Delivered demo %s to webhook (status %s)", result.demo_id, r.status_code)
