from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from .expression import Expression

@dataclass(frozen=True)
class AssertZero:
    expr: Expression

@dataclass(frozen=True)
class BlackBoxFuncCall:
    name: str
    inputs: Tuple[int, ...]
    num_bits: int
    outputs: Tuple[int, ...] = ()

@dataclass(frozen=True)
class Call:
    id: int
    inputs: Tuple[int, ...]
    outputs: Tuple[int, ...]

@dataclass(frozen=True)
class ForeignCall:
    function: str
    inputs: Tuple[Expression, ...]
    outputs: Tuple[int, ...] = ()

Opcode = Union[AssertZero, BlackBoxFuncCall, Call, ForeignCall]

def opcode_from_json(obj: Dict[str, Any]) -> Opcode:
    if len(obj) != 1:
        raise ValueError(f"opcode must have exactly one tag, got {sorted(obj)}")
    (tag, body), = obj.items()
    if tag == "AssertZero":
        return AssertZero(Expression.from_json(body))
    if tag == "BlackBoxFuncCall":
        return BlackBoxFuncCall(body["name"], tuple(int(w) for w in body.get("inputs", [])),
                                int(body.get("num_bits", 0)), tuple(int(w) for w in body.get("outputs", [])))
    if tag == "Call":
        return Call(int(body["id"]), tuple(int(w) for w in body["inputs"]),
                    tuple(int(w) for w in body["outputs"]))
    if tag == "ForeignCall":
        return ForeignCall(body["function"], tuple(Expression.from_json(e) for e in body.get("inputs", [])),
                           tuple(int(w) for w in body.get("outputs", [])))
    raise ValueError(f"unknown opcode {tag!r}")

def opcode_to_json(op: Opcode) -> Dict[str, Any]:
    if isinstance(op, AssertZero):
        return {"AssertZero": op.expr.to_json()}
    if isinstance(op, BlackBoxFuncCall):
        return {"BlackBoxFuncCall": {"name": op.name, "inputs": list(op.inputs),
                                     "num_bits": op.num_bits, "outputs": list(op.outputs)}}
    if isinstance(op, Call):
        return {"Call": {"id": op.id, "inputs": list(op.inputs), "outputs": list(op.outputs)}}
    if isinstance(op, ForeignCall):
        return {"ForeignCall": {"function": op.function, "inputs": [e.to_json() for e in op.inputs],
                                "outputs": list(op.outputs)}}
    raise TypeError(f"not an opcode: {type(op).__name__}")

@dataclass
class Circuit:
    current_witness_index: int = 0
    opcodes: List[Opcode] = field(default_factory=list)
    private_parameters: List[int] = field(default_factory=list)
    public_parameters: List[int] = field(default_factory=list)
    return_values: List[int] = field(default_factory=list)
    # opcode index -> error selector (see Abi.error_types)
    assert_messages: Dict[int, str] = field(default_factory=dict)

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "Circuit":
        return Circuit(
            current_witness_index=int(obj.get("current_witness_index", 0)),
            opcodes=[opcode_from_json(o) for o in obj.get("opcodes", [])],
            private_parameters=[int(w) for w in obj.get("private_parameters", [])],
            public_parameters=[int(w) for w in obj.get("public_parameters", [])],
            return_values=[int(w) for w in obj.get("return_values", [])],
            assert_messages={int(i): str(sel) for i, sel in obj.get("assert_messages", [])},
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "current_witness_index": self.current_witness_index,
            "opcodes": [opcode_to_json(o) for o in self.opcodes],
            "private_parameters": list(self.private_parameters),
            "public_parameters": list(self.public_parameters),
            "return_values": list(self.return_values),
            "assert_messages": [[i, sel] for i, sel in sorted(self.assert_messages.items())],
        }

@dataclass
class Program:
    """A compiled program; functions[0] is the entry point."""
    functions: List[Circuit] = field(default_factory=list)

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "Program":
        return Program([Circuit.from_json(c) for c in obj["functions"]])

    def to_json(self) -> Dict[str, Any]:
        return {"functions": [c.to_json() for c in self.functions]}
