from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.abi import WitnessMap

@dataclass
class StackItem:
    index: int          # function index within the program
    witness: WitnessMap

@dataclass
class WitnessStack:
    """
    Solved witnesses of one execution, one frame per completed call.
    Callees finish first, so the entry function sits on top.
    """
    items: List[StackItem] = field(default_factory=list)

    def push(self, index: int, witness: WitnessMap):
        self.items.append(StackItem(index, dict(witness)))

    def peek(self) -> Optional[StackItem]:
        return self.items[-1] if self.items else None

    def __len__(self) -> int:
        return len(self.items)
