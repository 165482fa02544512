from typing import Any, Callable, Dict, Optional

from babyvision.kernel.caching.logic import CacheEntry, calculate_config_hash
from babyvision.kernel.system.logging import get_logger

logger = get_logger(__name__)


class KernelCache:
    """
    Holds kernels and sampling maps derived for the ACTIVE frame geometry.
    Every entry is tied to the pixels-per-degree estimate it was built for;
    rebinding to a new estimate drops them all.
    """

    def __init__(self) -> None:
        self.pixels_per_degree: Optional[float] = None
        self._entries: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def rebind(self, pixels_per_degree: float) -> None:
        if self.pixels_per_degree != pixels_per_degree:
            if self._entries:
                logger.debug(
                    f"Invalidating {len(self._entries)} cached kernels "
                    f"(ppd {self.pixels_per_degree} -> {pixels_per_degree:.3f})"
                )
            self._entries.clear()
            self.pixels_per_degree = pixels_per_degree

    def get_or_build(self, key: Any, builder: Callable[[], Any]) -> Any:
        conf_hash = calculate_config_hash(key)
        entry = self._entries.get(conf_hash)
        if entry is not None:
            self.hits += 1
            return entry.data

        self.misses += 1
        data = builder()
        self._entries[conf_hash] = CacheEntry(conf_hash, data, self.pixels_per_degree or 0.0)
        return data

    def clear(self) -> None:
        """Invalidates all cache entries."""
        self._entries.clear()
        self.pixels_per_degree = None
