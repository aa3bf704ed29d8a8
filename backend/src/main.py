import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from sse_starlette.sse import EventSourceResponse

from models import EventRelay
from schemas import HealthResponse, StatsResponse, WebhookAck
from utilities import (
    EVENTS_ENDPOINT,
    EVENTS_TOPIC,
    SIGNATURE_HEADER,
    SSE_ENDPOINT,
    Settings,
    canonical_payload,
    check_handshake,
    get_logger,
    make_ack,
    make_sse_frame,
    setup_logging,
    verify_signature,
)

logger = get_logger(__name__)

VIEWER_HTML = f"""<html>
  <body>
    <h1>Webhook Events</h1>
    <pre id="events"></pre>

    <script>
      const events = document.getElementById("events");
      const write = (msg) => events.append(msg + "\\n");
      const source = new EventSource("{SSE_ENDPOINT}");
      source.addEventListener("{EVENTS_TOPIC}", (evt) => {{
          write(evt.data);
      }});
    </script>
  </body>
</html>"""


# -------------- Dependencies --------------
def get_relay(request: Request) -> EventRelay:
    return request.app.state.relay


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _query_param(request: Request, name: str) -> Optional[str]:
    # the provider namespaces its parameters as hub.<name>
    params = request.query_params
    value = params.get(f"hub.{name}")
    return value if value is not None else params.get(name)


# -------------- Streaming --------------
async def stream_events(relay: EventRelay, client_id: Optional[str] = None) -> AsyncGenerator[dict, None]:
    '''
    Subscribe to the relay and yield SSE frames until the stream is closed.
    Leaving the generator (client gone, or subscriber dropped) unsubscribes it.
    '''
    subscriber = relay.subscribe(client_id)
    try:
        async for event in subscriber:
            yield make_sse_frame(event)
    finally:
        await relay.unsubscribe(subscriber)


# -------------- App --------------
def create_app(settings: Optional[Settings] = None, relay: Optional[EventRelay] = None) -> FastAPI:
    settings = settings or Settings()
    relay = relay or EventRelay.from_settings(settings)
    setup_logging(level=settings.log_level, format=settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "relay_started",
            history_size=settings.history_size,
            replay_interval=settings.replay_interval,
            reject_invalid_signatures=settings.reject_invalid_signatures,
        )
        yield
        await relay.shutdown()
        logger.info("relay_stopped", **relay.stats())

    app = FastAPI(title="Webhook Event Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.relay = relay
    app.state.started_at = datetime.now(timezone.utc)

    @app.get("/", response_class=HTMLResponse)
    async def viewer():
        return HTMLResponse(VIEWER_HTML)

    @app.get(SSE_ENDPOINT)
    async def sse(relay: EventRelay = Depends(get_relay)):
        return EventSourceResponse(stream_events(relay))

    @app.get(EVENTS_ENDPOINT)
    async def verify_subscription(request: Request, settings: Settings = Depends(get_settings)):
        challenge = check_handshake(
            mode=_query_param(request, "mode"),
            challenge=_query_param(request, "challenge"),
            verify_token=_query_param(request, "verify_token"),
            expected_token=settings.verify_token,
        )
        if challenge is None:
            logger.info("subscription_handshake_failed", mode=_query_param(request, "mode"))
            return Response(status_code=400)
        logger.info("subscription_handshake_succeeded")
        return PlainTextResponse(challenge)

    @app.post(EVENTS_ENDPOINT, response_model=WebhookAck)
    async def receive_webhook(
        request: Request,
        relay: EventRelay = Depends(get_relay),
        settings: Settings = Depends(get_settings),
    ):
        raw = await request.body()

        if not verify_signature(raw, request.headers.get(SIGNATURE_HEADER), settings.webhook_secret):
            if settings.reject_invalid_signatures:
                logger.warning("webhook_signature_rejected", size=len(raw))
                raise HTTPException(status_code=403, detail="invalid signature")
            logger.warning("webhook_signature_invalid", size=len(raw))

        try:
            data = json.loads(raw)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid json")

        try:
            event = relay.publish(canonical_payload(data))
        except Exception:
            logger.exception("webhook_publish_failed")
            raise HTTPException(status_code=500, detail="internal error")

        logger.info("webhook_received", event_id=event.id)
        return make_ack()

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request, relay: EventRelay = Depends(get_relay)):
        uptime = datetime.now(timezone.utc) - request.app.state.started_at
        return {
            "uptime_sec": int(uptime.total_seconds()),
            "subscribers": len(relay.registry),
            "history": len(relay.history),
        }

    @app.get("/stats", response_model=StatsResponse)
    async def stats(relay: EventRelay = Depends(get_relay)):
        return relay.stats()

    return app


if __name__ == "__main__":
    # same as: uvicorn main:create_app --factory
    settings = Settings()
    uvicorn.run("main:create_app", factory=True, host=settings.host, port=settings.port)
