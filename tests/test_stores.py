import threading

from relay import identity, messagelog, subscriptions
from relay.clock import MonotonicClock
from relay.commands import Register, Subscribe
from relay.models import Subscription


def test_register_issues_unique_credentials(db, clock):
    ids = set()
    secrets = set()
    for _ in range(5):
        client_id, secret = identity.register(db, clock)
        ids.add(client_id)
        secrets.add(secret)
    assert len(ids) == 5
    assert len(secrets) == 5
    assert all(identity.exists(db, i) for i in ids)
    assert not identity.exists(db, "unknown")


def test_authenticate(db, clock):
    client_id, secret = identity.register(db, clock)
    assert identity.authenticate(db, client_id, secret)
    assert not identity.authenticate(db, client_id, "nope")
    assert not identity.authenticate(db, "unknown", secret)


def test_subscribe_is_idempotent(db, clock):
    client_id, _ = identity.register(db, clock)

    assert subscriptions.subscribe(db, clock, Subscribe(client_id=client_id, channel="news/general")) is True
    stamp = db.query(Subscription.last_polled).scalar()

    assert subscriptions.subscribe(db, clock, Subscribe(client_id=client_id, channel="news/general")) is False
    assert subscriptions.subscribe(db, clock, Subscribe(client_id=client_id, channel="news/general")) is False

    assert subscriptions.subscribed_channels(db, client_id) == {"news/general"}
    assert subscriptions.count_subscribers(db, "news/general") == 1
    assert db.query(Subscription.last_polled).scalar() == stamp


def test_count_subscribers_matches_exact_name(db, clock):
    a, _ = identity.register(db, clock)
    b, _ = identity.register(db, clock)
    subscriptions.subscribe(db, clock, Subscribe(client_id=a, channel="news/general"))
    subscriptions.subscribe(db, clock, Subscribe(client_id=b, channel="news/general"))
    subscriptions.subscribe(db, clock, Subscribe(client_id=b, channel="news/general/sub"))

    assert subscriptions.count_subscribers(db, "news/general") == 2
    assert subscriptions.count_subscribers(db, "news/general/sub") == 1
    assert subscriptions.count_subscribers(db, "news") == 0


def test_query_orders_by_timestamp(db, clock):
    client_id, _ = identity.register(db, clock)
    for text in ("a", "b", "c"):
        messagelog.append(db, clock, channel=client_id, sender_id=None, content=text)

    rows = messagelog.query(db, client_id, 0)
    assert [m.content for m in rows] == ["a", "b", "c"]
    assert [m.timestamp for m in rows] == sorted({m.timestamp for m in rows})


class FrozenClock:
    def __init__(self, value: int) -> None:
        self.value = value

    def now(self) -> int:
        return self.value


def test_equal_timestamps_keep_insertion_order(db, clock):
    client_id, _ = identity.register(db, clock)
    frozen = FrozenClock(1000)
    for text in ("x", "y", "z"):
        messagelog.append(db, frozen, channel=client_id, sender_id=None, content=text)

    rows = messagelog.query(db, client_id, 999)
    assert [m.content for m in rows] == ["x", "y", "z"]
    assert {m.timestamp for m in rows} == {1000}
    assert messagelog.query(db, client_id, 1000) == []


def test_register_takes_register_command(db, clock):
    client_id, secret = identity.register(db, clock, Register())
    assert identity.exists(db, client_id)
    assert identity.authenticate(db, client_id, secret)


def test_clock_strictly_increases():
    clock = MonotonicClock()
    values = [clock.now() for _ in range(1000)]
    assert all(b > a for a, b in zip(values, values[1:]))


def test_clock_is_thread_safe():
    clock = MonotonicClock()
    seen = []
    lock = threading.Lock()

    def worker():
        local = [clock.now() for _ in range(200)]
        with lock:
            seen.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(set(seen)) == len(seen)
