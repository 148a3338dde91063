import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import Settings, settings
from app.errors import WebhookRegistrationError
from app.models import AckBody
from app.nlu.client import ApiAiClient
from app.nlu.gateway import NluGateway
from app.processing.reply_dispatcher import ReplyDispatcher
from app.routing.access import AccessPolicy
from app.routing.sessions import SessionStore
from app.spark.client import SparkClient
from app.spark.profile import load_identity
from app.spark.webhooks import ensure_webhook
from app.workflows.webhook.controller import WebhookController

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("spark_bot")


async def bootstrap(config: Settings, spark_client: SparkClient, controller: WebhookController) -> None:
    logger.info("Starting bot on %s", config.spark_webhook_url)
    try:
        controller.identity = await asyncio.to_thread(
            load_identity, spark_client, config.dev_config
        )
    except Exception:
        logger.exception("Could not load bot profile; bot names will not be stripped")

    try:
        await asyncio.to_thread(
            ensure_webhook, spark_client, config.spark_webhook_url, config.spark_webhook_name
        )
    except WebhookRegistrationError as exc:
        logger.error("Error while setup webhook: %s", exc)
    except Exception:
        logger.exception("Webhook registration failed unexpectedly")


def create_app(
    config: Settings | None = None,
    spark_client: SparkClient | None = None,
    nlu_client: ApiAiClient | None = None,
) -> FastAPI:
    config = config or settings
    spark_client = spark_client or SparkClient(config)
    owns_nlu_client = nlu_client is None
    nlu_client = nlu_client or ApiAiClient(
        access_token=config.apiai_access_token,
        language=config.apiai_lang,
        request_source=config.apiai_request_source,
        base_url=config.apiai_base_url,
        protocol_version=config.apiai_protocol_version,
        timeout=config.http_timeout_seconds,
    )
    reply_dispatcher = ReplyDispatcher(
        spark_client,
        worker_count=config.reply_worker_count,
        max_queue_size=config.reply_queue_maxsize,
    )
    controller = WebhookController(
        spark_client=spark_client,
        access_policy=AccessPolicy(config.allowed_emails, config.spark_bot_email_suffix),
        session_store=SessionStore(),
        nlu_gateway=NluGateway(nlu_client, context_name=config.apiai_context_name),
        reply_dispatcher=reply_dispatcher,
        verbose=config.dev_config,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await reply_dispatcher.start()
        bootstrap_task = None
        if config.bootstrap_on_startup:
            bootstrap_task = asyncio.create_task(bootstrap(config, spark_client, controller))
        try:
            yield
        finally:
            if bootstrap_task is not None and not bootstrap_task.done():
                bootstrap_task.cancel()
                with suppress(asyncio.CancelledError):
                    await bootstrap_task
            await reply_dispatcher.stop()
            if owns_nlu_client:
                await nlu_client.aclose()

    app = FastAPI(title="Spark api.ai Bot", version="0.1.0", lifespan=lifespan)
    app.state.controller = controller
    app.state.reply_dispatcher = reply_dispatcher

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/spark/webhook")
    @app.post("/webhook")
    async def spark_webhook(request: Request):
        try:
            payload: Any = await request.json()
        except Exception:
            return JSONResponse(status_code=400, content=AckBody.build(400, "Invalid JSON").as_content())

        if not isinstance(payload, dict):
            payload = {}

        outcome = await controller.handle(payload)
        logger.info("Webhook handled terminal=%s message=%s", outcome.terminal.value, outcome.message)
        return JSONResponse(status_code=outcome.code, content=outcome.ack().as_content())

    return app


app = create_app()
