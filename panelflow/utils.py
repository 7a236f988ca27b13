# MIT License
from __future__ import annotations

import hashlib
import json
from typing import Optional

from pydantic import BaseModel


def round_to(value: float, digits: int = 6) -> float:
    """Round ``value`` to a fixed number of decimals for stable output."""
    return round(float(value), digits)


def round_optional(value: Optional[float], digits: int = 6) -> Optional[float]:
    return None if value is None else round_to(value, digits)


def stable_json(model: BaseModel) -> str:
    """Serialise a model to JSON with sorted keys.

    Two models holding the same values always produce the same string,
    regardless of the order in which their fields were supplied.
    """
    data = model.model_dump(mode="json", exclude_none=True)
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def fingerprint(model: BaseModel) -> str:
    """Compute a stable hash for a request or scenario model.

    Used to identify identical inputs for caching and audit trails.

    Parameters
    ----------
    model:
        Any pydantic model.

    Returns
    -------
    str
        ``"sha256-"`` followed by the hexadecimal digest of
        :func:`stable_json`.
    """
    payload = stable_json(model).encode("utf-8")
    return "sha256-" + hashlib.sha256(payload).hexdigest()
