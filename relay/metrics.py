from collections import defaultdict
from typing import Dict, Tuple


# (path, status) -> count
_http_requests_total: Dict[Tuple[str, str], int] = defaultdict(int)

# result -> count (publish and external ingestion)
_publish_requests_total: Dict[str, int] = defaultdict(int)

# channel kind -> summed deliveredTo
_fanout_total: Dict[str, int] = defaultdict(int)

# polls served and messages returned by them
_polls_total = 0
_poll_messages_total = 0

# simple latency buckets in ms
_latency_buckets = {
    "100": 0,
    "500": 0,
    "+Inf": 0,
}
_latency_count = 0


def inc_http_request(path: str, status: int) -> None:
    key = (path, str(status))
    _http_requests_total[key] += 1


def inc_publish_result(result: str) -> None:
    _publish_requests_total[result] += 1


def observe_fanout(channel_kind: str, delivered_to: int) -> None:
    _fanout_total[channel_kind] += delivered_to


def observe_poll(message_count: int) -> None:
    global _polls_total, _poll_messages_total
    _polls_total += 1
    _poll_messages_total += message_count


def observe_latency_ms(latency_ms: float) -> None:
    global _latency_count
    _latency_count += 1
    if latency_ms <= 100:
        _latency_buckets["100"] += 1
    if latency_ms <= 500:
        _latency_buckets["500"] += 1
    _latency_buckets["+Inf"] += 1


def render_metrics() -> str:
    """Return plain text metrics."""
    lines: list[str] = []

    for (path, status), value in sorted(_http_requests_total.items()):
        lines.append(
            f'http_requests_total{{path="{path}",status="{status}"}} {value}'
        )

    for result, value in sorted(_publish_requests_total.items()):
        lines.append(
            f'publish_requests_total{{result="{result}"}} {value}'
        )

    for kind, value in sorted(_fanout_total.items()):
        lines.append(f'publish_fanout_total{{kind="{kind}"}} {value}')

    lines.append(f"poll_requests_total {_polls_total}")
    lines.append(f"poll_messages_total {_poll_messages_total}")

    for le, value in _latency_buckets.items():
        lines.append(
            f'request_latency_ms_bucket{{le="{le}"}} {value}'
        )
    lines.append(f"request_latency_ms_count {_latency_count}")

    return "\n".join(lines) + "\n"
