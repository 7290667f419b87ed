"""
STARK key pair derivation and optional caching.

A key pair is built only from a hex private key: strip an optional 0x,
left-pad to 64 hex chars, parse. The public point is computed once when the
pair is built and read from the pair afterwards.
"""

import threading
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Optional

from ..curve import EC_ORDER, public_point
from ..exceptions import InvalidKeyValue
from ..utils.validators import validate_private_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StarkKeyPair:
    """
    STARK curve key pair.

    SECURITY: The private scalar is hidden from repr to prevent leakage in logs.
    """
    private_key: int = field(repr=False)
    public_key_x: int
    public_key_y: int

    @property
    def public_key_hex(self) -> str:
        """Stark key (x coordinate) as 0x + 64 hex chars."""
        return "0x" + format(self.public_key_x, "064x")

    @property
    def public_key_y_hex(self) -> str:
        """Y coordinate as 64 hex chars, no prefix."""
        return format(self.public_key_y, "064x")


def _build_key_pair(normalized_hex: str, label: str) -> StarkKeyPair:
    scalar = int(normalized_hex, 16)
    if not 0 < scalar < EC_ORDER:
        raise InvalidKeyValue(f"{label} is outside the STARK curve order")

    x, y = public_point(scalar)
    return StarkKeyPair(private_key=scalar, public_key_x=x, public_key_y=y)


def derive_key_pair(private_key_hex: Any, label: str = "L2 private key") -> StarkKeyPair:
    """
    Derive a key pair from a hex private key.

    Args:
        private_key_hex: Private key, with or without 0x prefix
        label: Name used in error messages

    Returns:
        StarkKeyPair

    Raises:
        InvalidKeyType: If the key is not a string
        InvalidKeyValue: If the key is empty, not hex, or out of range
    """
    return _build_key_pair(validate_private_key(private_key_hex, label), label)


class KeyPairCache:
    """
    Thread-safe LRU cache of derived key pairs.

    Keyed by the normalized 64-hex private key, so "0xab" and "ab" share an
    entry while keys that normalize differently never do.
    """

    def __init__(self, max_size: int = 1024):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of key pairs kept before LRU eviction
        """
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._pairs: OrderedDict[str, StarkKeyPair] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get_or_derive(self, private_key_hex: Any, label: str = "L2 private key") -> StarkKeyPair:
        """
        Return the cached pair for a key, deriving it on first use.

        Args:
            private_key_hex: Private key, with or without 0x prefix
            label: Name used in error messages

        Returns:
            StarkKeyPair
        """
        normalized = validate_private_key(private_key_hex, label)

        with self._lock:
            cached = self._pairs.get(normalized)
            if cached is not None:
                self._pairs.move_to_end(normalized)
                self._hits += 1
                return cached
            self._misses += 1

        # Curve multiplication happens outside the lock
        pair = _build_key_pair(normalized, label)

        with self._lock:
            existing = self._pairs.get(normalized)
            if existing is not None:
                return existing
            self._pairs[normalized] = pair
            while len(self._pairs) > self.max_size:
                self._pairs.popitem(last=False)
                logger.debug("Evicted key pair from cache")

        return pair

    def clear(self) -> None:
        """Drop all cached pairs."""
        with self._lock:
            self._pairs.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        """Cache counters (no key material)."""
        with self._lock:
            return {"size": len(self._pairs), "hits": self._hits, "misses": self._misses}

    def __len__(self) -> int:
        with self._lock:
            return len(self._pairs)

    def __repr__(self) -> str:
        return f"KeyPairCache(size={len(self)}, max_size={self.max_size})"


def resolve_key_pair(
    private_key_hex: Any,
    label: str,
    cache: Optional[KeyPairCache] = None
) -> StarkKeyPair:
    """Derive a key pair, going through the cache when one is given."""
    if cache is not None:
        return cache.get_or_derive(private_key_hex, label)
    return derive_key_pair(private_key_hex, label)
