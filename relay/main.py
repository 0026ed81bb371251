from contextlib import asynccontextmanager
from typing import Optional

from fastapi import (
    APIRouter,
    FastAPI,
    Depends,
    HTTPException,
    Request,
    status,
    Query,
)
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from sqlalchemy.orm import Session

from . import identity, poll as poll_engine, router, subscriptions
from .clock import MonotonicClock
from .commands import ExternalIngest, Poll, Publish, Register, Subscribe
from .config import Settings
from .errors import RecipientNotFound, RelayError, SecretMismatch
from .storage import Database, get_db, get_stats
from .logging_utils import configure_logging, log_extra, logging_middleware
from .metrics import (
    inc_publish_result,
    observe_fanout,
    observe_poll,
    render_metrics,
)
from .tokens import TokenIssuer, bearer_token


# ---------- Pydantic Models ----------


class PublishRequest(BaseModel):
    channel: str = Field(min_length=1)
    content: str
    parent_id: Optional[str] = None


class SubscribeRequest(BaseModel):
    channel: str = Field(min_length=1)


class IncomingRequest(BaseModel):
    client_id: str = Field(min_length=1)
    secret: str
    content: str


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    channel: str
    sender_id: Optional[str]
    content: str
    timestamp: int
    parent_id: Optional[str]


# ---------- Dependencies ----------


def get_clock(request: Request) -> MonotonicClock:
    return request.app.state.clock


def current_client(request: Request) -> str:
    """Client id bound to the bearer token; rejects the call otherwise."""
    tokens: TokenIssuer = request.app.state.tokens
    return tokens.verify(bearer_token(request.headers.get("Authorization")))


def is_ready(settings: Settings, database: Database, db: Session | None = None) -> tuple[bool, str]:
    if not settings.JWT_SECRET:
        return False, "JWT_SECRET not set"
    if db is None:
        return True, "ok"
    # Check DB reachable
    try:
        database.ping(db)
    except Exception as e:
        return False, f"DB error: {e}"
    return True, "ok"


# ---------- Exception handler for domain errors ----------


async def relay_error_handler(request: Request, exc: RelayError):
    log_extra(request, result=type(exc).__name__)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


# ---------- Endpoints ----------


routes = APIRouter()


@routes.get("/health/live")
def health_live():
    # always 200 once running
    return {"status": "ok"}


@routes.get("/health/ready")
def health_ready(request: Request, db: Session = Depends(get_db)):
    ok, msg = is_ready(request.app.state.settings, request.app.state.database, db)
    if not ok:
        raise HTTPException(status_code=503, detail=msg)
    return {"status": "ok"}


@routes.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: Request,
    db: Session = Depends(get_db),
    clock: MonotonicClock = Depends(get_clock),
):
    client_id, secret = identity.register(db, clock, Register())
    token = request.app.state.tokens.issue(client_id)
    log_extra(request, client_id=client_id)
    return {"id": client_id, "secret": secret, "token": token}


@routes.post("/publish")
def publish(
    request: Request,
    payload: PublishRequest,
    sender_id: str = Depends(current_client),
    db: Session = Depends(get_db),
    clock: MonotonicClock = Depends(get_clock),
):
    command = Publish(
        sender_id=sender_id,
        channel=payload.channel,
        content=payload.content,
        parent_id=payload.parent_id,
    )
    try:
        result = router.publish(db, clock, command)
    except RecipientNotFound:
        inc_publish_result("recipient_not_found")
        raise

    channel_kind = "topic" if isinstance(result.target, router.Topic) else "direct"
    inc_publish_result(channel_kind)
    observe_fanout(channel_kind, result.delivered_to)
    log_extra(
        request,
        message_id=result.id,
        channel_kind=channel_kind,
        delivered_to=result.delivered_to,
    )
    return {"id": result.id, "deliveredTo": result.delivered_to}


@routes.post("/subscribe")
def subscribe(
    request: Request,
    payload: SubscribeRequest,
    client_id: str = Depends(current_client),
    db: Session = Depends(get_db),
    clock: MonotonicClock = Depends(get_clock),
):
    command = Subscribe(client_id=client_id, channel=payload.channel)
    created = subscriptions.subscribe(db, clock, command)
    log_extra(request, channel=command.channel, created=created)
    return {"ok": True}


@routes.get("/poll", response_model=list[MessageOut])
def poll(
    request: Request,
    since: int = Query(default=0, ge=0),
    client_id: str = Depends(current_client),
    db: Session = Depends(get_db),
    clock: MonotonicClock = Depends(get_clock),
):
    rows = poll_engine.poll(db, clock, Poll(client_id=client_id, since=since))
    observe_poll(len(rows))
    log_extra(request, message_count=len(rows))
    return [MessageOut.model_validate(m) for m in rows]


@routes.post("/incoming")
def incoming(
    request: Request,
    payload: IncomingRequest,
    db: Session = Depends(get_db),
    clock: MonotonicClock = Depends(get_clock),
):
    command = ExternalIngest(
        client_id=payload.client_id,
        secret=payload.secret,
        content=payload.content,
    )
    try:
        message_id = router.external_ingest(db, clock, command)
    except SecretMismatch:
        inc_publish_result("secret_mismatch")
        raise

    inc_publish_result("ingested")
    log_extra(request, message_id=message_id, channel_kind="direct")
    return {"id": message_id}


@routes.get("/stats")
def stats(db: Session = Depends(get_db)):
    return get_stats(db)


@routes.get("/metrics")
def metrics():
    text = render_metrics()
    return PlainTextResponse(content=text, media_type="text/plain")


# ---------- Application ----------


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)
    database = Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # initialize DB schema
        database.init()
        yield
        database.dispose()

    app = FastAPI(title="Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.tokens = TokenIssuer(settings.signing_secret, settings.TOKEN_TTL_SECONDS)
    app.state.clock = MonotonicClock()

    # Attach logging middleware
    app.middleware("http")(logging_middleware)
    app.add_exception_handler(RelayError, relay_error_handler)
    app.include_router(routes)
    return app


app = create_app()
