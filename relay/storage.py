from typing import Iterable

from fastapi import Request
from sqlalchemy import create_engine, func, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from . import messagelog
from .models import Base, Client, Subscription


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    # in-memory databases live per connection; share a single one
    if url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url:
        kwargs["poolclass"] = StaticPool
    return kwargs


class Database:
    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = create_engine(url, **_engine_kwargs(url))
        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def init(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self, db: Session) -> None:
        db.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterable[Session]:
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_stats(db: Session) -> dict:
    total_clients = db.query(func.count(Client.id)).scalar() or 0
    total_messages = messagelog.count(db)
    total_subscriptions = (
        db.query(func.count()).select_from(Subscription).scalar() or 0
    )

    # top 10 channels by subscriber count
    rows = (
        db.query(Subscription.channel, func.count(Subscription.client_id).label("cnt"))
        .group_by(Subscription.channel)
        .order_by(func.count(Subscription.client_id).desc(), Subscription.channel.asc())
        .limit(10)
        .all()
    )
    top_channels = [{"channel": r[0], "subscribers": int(r[1])} for r in rows]

    return {
        "total_clients": int(total_clients),
        "total_messages": int(total_messages),
        "total_subscriptions": int(total_subscriptions),
        "top_channels": top_channels,
    }
