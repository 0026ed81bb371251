from dataclasses import dataclass
from typing import Union

from sqlalchemy.orm import Session

from . import identity, messagelog, subscriptions
from .clock import MonotonicClock
from .commands import ExternalIngest, Publish
from .errors import RecipientNotFound, SecretMismatch


TOPIC_SEPARATOR = "/"


@dataclass(frozen=True)
class Direct:
    client_id: str


@dataclass(frozen=True)
class Topic:
    name: str


Target = Union[Direct, Topic]


@dataclass(frozen=True)
class PublishResult:
    id: str
    target: Target
    delivered_to: int


def classify(target: str) -> Target:
    if TOPIC_SEPARATOR in target:
        return Topic(target)
    return Direct(target)


def publish(db: Session, clock: MonotonicClock, command: Publish) -> PublishResult:
    """
    Validate the target, append the message and compute the fan-out.

    delivered_to is 1 for direct messages and the number of subscriptions on
    the channel at this moment for topics. Late subscribers still see the
    message on their next poll.
    """
    target = classify(command.channel)

    if isinstance(target, Direct) and not identity.exists(db, target.client_id):
        raise RecipientNotFound()

    message_id = messagelog.append(
        db,
        clock,
        channel=command.channel,
        sender_id=command.sender_id,
        content=command.content,
        parent_id=command.parent_id,
    )

    if isinstance(target, Topic):
        delivered_to = subscriptions.count_subscribers(db, target.name)
    else:
        delivered_to = 1

    return PublishResult(id=message_id, target=target, delivered_to=delivered_to)


def external_ingest(db: Session, clock: MonotonicClock, command: ExternalIngest) -> str:
    """Direct message to `command.client_id`, authorised by that client's secret."""
    if not identity.authenticate(db, command.client_id, command.secret):
        raise SecretMismatch()

    return messagelog.append(
        db,
        clock,
        channel=command.client_id,
        sender_id=None,
        content=command.content,
    )
