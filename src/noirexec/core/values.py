from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

from .fieldla import BN254_PRIME, modp, to_hex

@dataclass(frozen=True)
class Scalar:
    """A single BN254 field element, always stored reduced mod p."""
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", modp(int(self.value), BN254_PRIME))

    def hex(self) -> str:
        return to_hex(self.value)

@dataclass(frozen=True)
class Sequence:
    items: Tuple["ValueTree", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

@dataclass(frozen=True)
class Text:
    text: str = ""

@dataclass(frozen=True)
class Record:
    fields: Dict[str, "ValueTree"] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fields", dict(self.fields))

    def __getitem__(self, name: str) -> "ValueTree":
        return self.fields[name]

ValueTree = Union[Scalar, Sequence, Text, Record]

# a function's inputs, keyed by declared parameter name
InputMap = Dict[str, ValueTree]
