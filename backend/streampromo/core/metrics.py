from collections import Counter
from threading import Lock
from typing import Dict, Counter as CounterType

_metrics: CounterType[str] = Counter()
_lock = Lock()


def _inc(key: str) -> None:
    with _lock:
        _metrics[key] += 1


def record_code_issued(kind: str) -> None:
    _inc(f"{kind}_codes_issued")


def record_code_collision() -> None:
    _inc("code_collisions")


def record_redemption() -> None:
    _inc("gift_redemptions")


def record_redemption_exhausted() -> None:
    _inc("gift_redemptions_exhausted")


def record_redemption_race_lost() -> None:
    _inc("gift_redemption_races_lost")


def snapshot() -> Dict[str, int]:
    with _lock:
        return dict(_metrics)


def reset() -> None:
    with _lock:
        _metrics.clear()
