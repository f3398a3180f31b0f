from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import Any

_INT_FIELDS = ("max_supply", "max_mint_amount", "reserve_limit", "sale_start", "sale_end")
_STR_FIELDS = ("not_revealed_uri", "base_uri", "base_extension")
_BOOL_FIELDS = ("paused", "revealed")


@dataclass(frozen=True)
class GenNFTParams:
    """Constructor arguments for the GenNFT contract, in constructor order.

    Field order is the positional order the contract expects, so do not
    reorder fields without changing the contract.
    """

    max_supply: int
    max_mint_amount: int
    reserve_limit: int
    sale_start: int
    sale_end: int
    not_revealed_uri: str
    base_uri: str
    base_extension: str
    paused: bool
    revealed: bool

    def __post_init__(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            # bool is an int subclass; a flag in a quantity slot is a mistake
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {type(value).__name__}")
            if value < 0:
                raise ValueError(f"{name} must not be negative")
        for name in _STR_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a str")
        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")
        if self.sale_end < self.sale_start:
            raise ValueError("sale_end must not precede sale_start")

    def constructor_args(self) -> tuple[Any, ...]:
        return astuple(self)

    def as_ordered_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
