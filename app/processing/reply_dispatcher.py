from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import requests

from app.errors import DeliveryError
from app.spark.client import SparkClient, describe_http_error

logger = logging.getLogger("spark_bot")


@dataclass(frozen=True)
class ReplyPayload:
    room_id: str
    text: str
    files: list[str] | None = None


class ReplyDispatcher:
    def __init__(
        self,
        spark_client: SparkClient,
        worker_count: int = 2,
        max_queue_size: int = 1000,
    ) -> None:
        self.spark_client = spark_client
        self.worker_count = worker_count
        self.max_queue_size = max_queue_size
        self.queue: asyncio.Queue[ReplyPayload | None] = asyncio.Queue(maxsize=max_queue_size)
        self.workers: list[asyncio.Task[None]] = []
        self.running = False

    async def start(self) -> None:
        if self.running:
            return
        self.running = True
        for idx in range(self.worker_count):
            task = asyncio.create_task(self._worker(idx))
            self.workers.append(task)

    async def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        for _ in self.workers:
            await self.queue.put(None)
        if self.workers:
            await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers.clear()
        # A queue stays bound to the loop that first awaited it.
        self.queue = asyncio.Queue(maxsize=self.max_queue_size)

    async def send(
        self, conversation_id: str, text: str, attachment_urls: list[str] | None = None
    ) -> dict[str, Any]:
        logger.info("roomId: %s text: %s files: %s", conversation_id, text, attachment_urls)
        try:
            return await asyncio.to_thread(
                self.spark_client.create_message, conversation_id, text, attachment_urls
            )
        except requests.RequestException as exc:
            status_code, body = describe_http_error(exc)
            raise DeliveryError(conversation_id, status_code=status_code, body=body) from exc

    def dispatch(
        self, conversation_id: str, text: str, attachment_urls: list[str] | None = None
    ) -> bool:
        payload = ReplyPayload(room_id=conversation_id, text=text, files=attachment_urls)
        try:
            self.queue.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            logger.error("Reply queue is full. Dropping reply for room_id=%s", conversation_id)
            return False

    async def _worker(self, worker_id: int) -> None:
        while True:
            payload = await self.queue.get()
            try:
                if payload is None:
                    return
                answer = await self.send(payload.room_id, payload.text, payload.files)
                logger.info("Reply answer: %s", answer)
            except DeliveryError as exc:
                logger.error(
                    "Error while reply: room_id=%s status=%s body=%s",
                    exc.room_id,
                    exc.status_code,
                    exc.body,
                )
            except Exception:
                logger.exception("Reply worker %s failed", worker_id)
            finally:
                self.queue.task_done()
