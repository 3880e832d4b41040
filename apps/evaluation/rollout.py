# apps/evaluation/rollout.py
"""Deterministic percentage rollout bucketing.

The hash is a 31-multiplier rolling hash over UTF-16 code units with signed
32-bit wraparound after every step. Changing it reshuffles every user's
bucket, so it must stay bit-exact with existing clients.
"""
from typing import Optional

from .types import ANONYMOUS_USER_ID

BUCKETS = 100


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_code_units(value: str):
    encoded = value.encode('utf-16-le', 'surrogatepass')
    for i in range(0, len(encoded), 2):
        yield encoded[i] | (encoded[i + 1] << 8)


def string_hash(value: str) -> int:
    """Signed 32-bit rolling hash of ``value``."""
    result = 0
    for unit in _utf16_code_units(value):
        result = _to_int32(result * 31 + unit)
    return result


class RolloutHasher:
    def bucket(self, user_id: Optional[str], feature_name: str) -> int:
        """Return the user's stable bucket in [0, 99] for ``feature_name``."""
        key = f"{user_id or ANONYMOUS_USER_ID}:{feature_name}"
        return abs(string_hash(key)) % BUCKETS

    def is_in_rollout(self, user_id: Optional[str], feature_name: str, percentage: int) -> bool:
        return self.bucket(user_id, feature_name) < percentage
