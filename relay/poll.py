from typing import List

from sqlalchemy.orm import Session

from . import identity, messagelog, subscriptions
from .clock import MonotonicClock
from .commands import Poll
from .models import Message


def poll(db: Session, clock: MonotonicClock, command: Poll) -> List[Message]:
    """
    Messages newer than `command.since` visible to the client: sent to it
    directly or to a channel it subscribes to.

    Every call stamps the client's last_seen and all of its subscriptions'
    last_polled with the same time, even when nothing is returned. Those
    stamps are liveness data only; filtering uses the caller's `since`.
    """
    channels = subscriptions.subscribed_channels(db, command.client_id)
    rows = messagelog.query(db, command.client_id, command.since, channels)

    now = clock.now()
    identity.touch(db, command.client_id, now)
    subscriptions.advance_cursor(db, command.client_id, now)
    return rows
