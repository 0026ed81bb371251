import hmac
import uuid
from typing import Tuple

from sqlalchemy.orm import Session

from .clock import MonotonicClock
from .commands import Register
from .models import Client


def register(
    db: Session, clock: MonotonicClock, command: Register = Register()
) -> Tuple[str, str]:
    """Create a client with a fresh id and shared secret. Returns (id, secret)."""
    client = Client(
        id=str(uuid.uuid4()),
        secret=str(uuid.uuid4()),
        last_seen=clock.now(),
    )
    db.add(client)
    db.commit()
    return client.id, client.secret


def exists(db: Session, client_id: str) -> bool:
    return db.query(Client.id).filter(Client.id == client_id).first() is not None


def authenticate(db: Session, client_id: str, secret: str) -> bool:
    stored = db.query(Client.secret).filter(Client.id == client_id).scalar()
    if stored is None:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), secret.encode("utf-8"))


def touch(db: Session, client_id: str, now: int) -> None:
    db.query(Client).filter(Client.id == client_id).update(
        {Client.last_seen: now}, synchronize_session=False
    )
    db.commit()
