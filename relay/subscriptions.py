from typing import Set

from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .clock import MonotonicClock
from .commands import Subscribe
from .models import Subscription


def subscribe(db: Session, clock: MonotonicClock, command: Subscribe) -> bool:
    """
    Insert-or-ignore the (client_id, channel) pair of `command`.
    Returns True if a new subscription was created, False if it already existed;
    an existing row is never modified.
    """
    client_id, channel = command.client_id, command.channel
    if db.get_bind().dialect.name == "sqlite":
        stmt = (
            sqlite_insert(Subscription)
            .values(client_id=client_id, channel=channel, last_polled=clock.now())
            .on_conflict_do_nothing(index_elements=["client_id", "channel"])
        )
        result = db.execute(stmt)
        db.commit()
        return result.rowcount == 1

    db.add(Subscription(client_id=client_id, channel=channel, last_polled=clock.now()))
    try:
        db.commit()
        return True
    except IntegrityError:
        db.rollback()
        return False


def subscribed_channels(db: Session, client_id: str) -> Set[str]:
    rows = db.query(Subscription.channel).filter(Subscription.client_id == client_id)
    return {r[0] for r in rows}


def count_subscribers(db: Session, channel: str) -> int:
    return (
        db.query(func.count(Subscription.client_id))
        .filter(Subscription.channel == channel)
        .scalar()
        or 0
    )


def advance_cursor(db: Session, client_id: str, now: int) -> None:
    db.query(Subscription).filter(Subscription.client_id == client_id).update(
        {Subscription.last_polled: now}, synchronize_session=False
    )
    db.commit()
