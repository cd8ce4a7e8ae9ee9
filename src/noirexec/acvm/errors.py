from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class OpcodeLocation:
    function: int   # index into the program's functions
    opcode: int     # index into that function's opcodes

    def __str__(self) -> str:
        return f"{self.function}:{self.opcode}"


class SolverError(Exception):
    """
    Execution failure inside the solver. `call_stack` runs from the entry
    function's opcode down to the failing one.
    """

    def __init__(self, reason: str, call_stack: Optional[List[OpcodeLocation]] = None):
        super().__init__(reason)
        self.reason = reason
        self.call_stack: List[OpcodeLocation] = list(call_stack or [])

    def push_caller(self, loc: OpcodeLocation):
        self.call_stack.insert(0, loc)

    @property
    def location(self) -> Optional[OpcodeLocation]:
        return self.call_stack[-1] if self.call_stack else None

    def __str__(self) -> str:
        where = self.location
        return f"{self.reason} (at opcode {where})" if where else self.reason


class UnsatisfiedConstraintError(SolverError):
    def __init__(self, call_stack=None, payload: Optional[str] = None):
        super().__init__("Cannot satisfy constraint", call_stack)
        # error selector into the ABI's error_types, when the assertion has a message
        self.payload = payload


class OpcodeNotSolvableError(SolverError):
    pass


class BlackBoxFunctionFailedError(SolverError):
    def __init__(self, name: str, reason: str, call_stack=None):
        super().__init__(f"{name} failed: {reason}", call_stack)
        self.name = name


class ForeignCallFailedError(SolverError):
    def __init__(self, function: str, reason: str, call_stack=None):
        super().__init__(f"foreign call `{function}` failed: {reason}", call_stack)
        self.function = function
