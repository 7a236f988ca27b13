# MIT License
"""Resolution of partially supplied assumptions against documented defaults.

Requests may carry any subset of an assumption model's fields.  The missing
ones fall back to the defaults declared on the model, and every resolved
value is recorded with its provenance so that reports can show which numbers
came from the caller and which from the engine.
"""
from __future__ import annotations

from typing import Any, List, Literal, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict

M = TypeVar("M", bound=BaseModel)

AssumptionSource = Literal["request", "core-default", "route-default"]


class AssumptionUsed(BaseModel):
    """One resolved assumption and where its value came from."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Union[bool, float, str]
    source: AssumptionSource
    description: str = ""


def resolve_assumptions(
    model_cls: Type[M],
    overrides: Optional[Union[M, Mapping[str, Any]]],
    prefix: str,
) -> Tuple[M, List[AssumptionUsed]]:
    """Validate ``overrides`` against ``model_cls`` and trace every field.

    Parameters
    ----------
    model_cls:
        Assumption model whose field defaults form the default table.
    overrides:
        ``None``, a mapping of field overrides, or an already built model.
        A built model only counts the fields it was explicitly given as
        request values.
    prefix:
        Namespace prepended to each traced name, e.g. ``"assumptions"``.

    Returns
    -------
    tuple
        The resolved model and one :class:`AssumptionUsed` per field, in
        field declaration order.
    """
    if overrides is None:
        resolved = model_cls()
    elif isinstance(overrides, model_cls):
        resolved = overrides
    else:
        resolved = model_cls.model_validate(dict(overrides))
    used = [
        AssumptionUsed(
            name=f"{prefix}.{name}",
            value=getattr(resolved, name),
            source="request" if name in resolved.model_fields_set else "core-default",
            description=field.description or "",
        )
        for name, field in model_cls.model_fields.items()
    ]
    return resolved, used


__all__ = ["AssumptionUsed", "AssumptionSource", "resolve_assumptions"]
