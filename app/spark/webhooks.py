from __future__ import annotations

import logging
from typing import Any

import requests

from app.errors import WebhookRegistrationError
from app.spark.client import SparkClient, describe_http_error

logger = logging.getLogger("spark_bot")


def ensure_webhook(spark_client: SparkClient, target_url: str, name: str) -> dict[str, Any]:
    """Register the message webhook unless one already points at target_url."""
    if not target_url:
        raise WebhookRegistrationError("No public webhook URL configured")

    logger.info("Start webhook check")
    try:
        items = spark_client.list_webhooks(max_items=100)
    except requests.RequestException as exc:
        status_code, body = describe_http_error(exc)
        raise WebhookRegistrationError(
            f"Error while get webhooks: status={status_code} body={body}"
        ) from exc
    except ValueError as exc:
        raise WebhookRegistrationError(f"Error while get webhooks: {exc}") from exc

    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise WebhookRegistrationError(f"Error while get webhooks: unexpected items {items!r}")

    for item in items:
        if item.get("targetUrl") == target_url:
            logger.info("Webhook already present for this bot. Webhook URL: %s", target_url)
            return item

    logger.info("Start webhook creation")
    try:
        created = spark_client.create_webhook(target_url=target_url, name=name)
    except requests.RequestException as exc:
        status_code, body = describe_http_error(exc)
        raise WebhookRegistrationError(
            f"Error while setup webhook: status={status_code} body={body}"
        ) from exc

    logger.info("Webhook result %s", created)
    return created
