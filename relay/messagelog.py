import uuid
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .clock import MonotonicClock
from .models import Message


def append(
    db: Session,
    clock: MonotonicClock,
    *,
    channel: str,
    sender_id: Optional[str],
    content: str,
    parent_id: Optional[str] = None,
) -> str:
    """Write one immutable message row and return its id."""
    msg = Message(
        id=str(uuid.uuid4()),
        channel=channel,
        sender_id=sender_id,
        content=content,
        timestamp=clock.now(),
        parent_id=parent_id,
    )
    db.add(msg)
    db.commit()
    return msg.id


def query(
    db: Session,
    client_id: str,
    since: int,
    channels: Iterable[str] = (),
) -> List[Message]:
    """
    Messages newer than `since` addressed to `client_id` directly or to any of
    `channels`, oldest first.
    """
    targets = [client_id, *channels]
    return (
        db.query(Message)
        .filter(Message.timestamp > since)
        .filter(Message.channel.in_(targets))
        .order_by(Message.timestamp.asc(), Message.seq.asc())
        .all()
    )


def count(db: Session) -> int:
    return db.query(func.count(Message.seq)).scalar() or 0
