"""
Cache envelope model.
Wraps a cached payload together with the time it was written.
"""
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CacheEnvelope:
    """A cached payload stamped with its write time (epoch seconds)."""
    timestamp: float
    payload: Any

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        """True while the payload is younger than the TTL at time `now`."""
        return self.age(now) < ttl_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {'timestamp': self.timestamp, 'data': self.payload}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["CacheEnvelope"]:
        if not isinstance(data, dict) or 'timestamp' not in data or 'data' not in data:
            return None
        try:
            timestamp = float(data['timestamp'])
        except (TypeError, ValueError):
            return None
        return cls(timestamp=timestamp, payload=data['data'])

    @classmethod
    def wrap(cls, payload: Any, now: Optional[float] = None) -> "CacheEnvelope":
        return cls(timestamp=time.time() if now is None else now, payload=payload)
