import hashlib
import json
from dataclasses import dataclass, asdict
from typing import Any

import numpy as np


@dataclass
class CacheEntry:
    """
    A derived array (kernel weights, sampling map) and the parameters it came from.
    """

    config_hash: str
    data: Any
    pixels_per_degree: float


def calculate_config_hash(config: Any) -> str:
    """
    Calculates a stable MD5 hash for a dataclass configuration or plain value.
    Values are sorted to ensure consistency.
    """
    if hasattr(config, "to_dict"):
        data = config.to_dict()
    elif hasattr(config, "__dataclass_fields__"):
        data = asdict(config)
    else:
        data = config

    serialized = json.dumps(data, sort_keys=True, default=_json_default)
    return hashlib.md5(serialized.encode("utf-8")).hexdigest()


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if hasattr(value, "__dataclass_fields__"):
        return asdict(value)
    return str(value)
