from __future__ import annotations
import logging
from typing import Dict, List

from ..core.abi import WitnessMap
from .blackbox import BlackBoxError, Bn254BlackBoxSolver
from .errors import (
    OpcodeLocation, SolverError, UnsatisfiedConstraintError, OpcodeNotSolvableError,
    BlackBoxFunctionFailedError, ForeignCallFailedError,
)
from .expression import solve_for_unknown
from .foreign_calls import ForeignCallError, ForeignCallExecutor
from .opcodes import AssertZero, BlackBoxFuncCall, Call, ForeignCall, Program
from .witness import WitnessStack

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 256


class ACVM:
    """Solves one function of a program, opcode by opcode, in order."""

    def __init__(self, program: Program, function_index: int, initial_witness: WitnessMap,
                 blackbox: Bn254BlackBoxSolver, foreign_calls: ForeignCallExecutor,
                 stack: WitnessStack, depth: int = 0):
        self.program = program
        self.function_index = function_index
        self.circuit = program.functions[function_index]
        self.witness: Dict[int, int] = {w: v % blackbox.prime for w, v in initial_witness.items()}
        self.blackbox = blackbox
        self.foreign_calls = foreign_calls
        self.stack = stack
        self.depth = depth

    @property
    def p(self) -> int:
        return self.blackbox.prime

    def solve(self) -> WitnessMap:
        for i, op in enumerate(self.circuit.opcodes):
            loc = OpcodeLocation(self.function_index, i)
            if isinstance(op, AssertZero):
                self._assert_zero(op, loc)
            elif isinstance(op, BlackBoxFuncCall):
                self._blackbox(op, loc)
            elif isinstance(op, Call):
                self._call(op, loc)
            elif isinstance(op, ForeignCall):
                self._foreign_call(op, loc)
            else:
                raise OpcodeNotSolvableError(f"unsupported opcode {type(op).__name__}", [loc])
        return self.witness

    def _insert(self, w: int, value: int, loc: OpcodeLocation):
        value %= self.p
        prev = self.witness.get(w)
        if prev is not None and prev != value:
            raise UnsatisfiedConstraintError([loc], self.circuit.assert_messages.get(loc.opcode))
        self.witness[w] = value

    def _read(self, ws, loc: OpcodeLocation) -> List[int]:
        missing = [w for w in ws if w not in self.witness]
        if missing:
            raise OpcodeNotSolvableError(f"missing assignment for witness {missing[0]}", [loc])
        return [self.witness[w] for w in ws]

    def _assert_zero(self, op: AssertZero, loc: OpcodeLocation):
        coeffs, const, nonlinear = op.expr.partial(self.witness, self.p)
        if nonlinear or len(coeffs) > 1:
            raise OpcodeNotSolvableError("expression has too many unknowns", [loc])
        if not coeffs:
            if const != 0:
                raise UnsatisfiedConstraintError([loc], self.circuit.assert_messages.get(loc.opcode))
            return
        (w, c), = coeffs.items()
        self.witness[w] = solve_for_unknown(c, const, self.p)

    def _blackbox(self, op: BlackBoxFuncCall, loc: OpcodeLocation):
        inputs = self._read(op.inputs, loc)
        try:
            outputs = self.blackbox.solve(op.name, inputs, op.num_bits)
        except BlackBoxError as err:
            raise BlackBoxFunctionFailedError(op.name, str(err), [loc]) from err
        if len(outputs) != len(op.outputs):
            raise BlackBoxFunctionFailedError(op.name, f"expected {len(op.outputs)} outputs, got {len(outputs)}", [loc])
        for w, v in zip(op.outputs, outputs):
            self._insert(w, v, loc)

    def _call(self, op: Call, loc: OpcodeLocation):
        if not 0 <= op.id < len(self.program.functions):
            raise OpcodeNotSolvableError(f"call to unknown function {op.id}", [loc])
        if self.depth >= MAX_CALL_DEPTH:
            raise OpcodeNotSolvableError("maximum call depth exceeded", [loc])
        args = self._read(op.inputs, loc)
        callee = ACVM(self.program, op.id, dict(enumerate(args)), self.blackbox,
                      self.foreign_calls, self.stack, self.depth + 1)
        try:
            result = callee.solve()
        except SolverError as err:
            err.push_caller(loc)
            raise
        self.stack.push(op.id, result)
        ret = callee.circuit.return_values
        if len(ret) != len(op.outputs):
            raise OpcodeNotSolvableError(
                f"function {op.id} returns {len(ret)} values, call site expects {len(op.outputs)}", [loc])
        for w, v in zip(op.outputs, callee._read(ret, loc)):
            self._insert(w, v, loc)

    def _foreign_call(self, op: ForeignCall, loc: OpcodeLocation):
        inputs = []
        for e in op.inputs:
            v = e.evaluate(self.witness, self.p)
            if v is None:
                raise OpcodeNotSolvableError(f"foreign call `{op.function}` has unsolved inputs", [loc])
            inputs.append(v)
        try:
            outputs = self.foreign_calls.execute(op.function, inputs, len(op.outputs))
        except ForeignCallError as err:
            raise ForeignCallFailedError(op.function, str(err), [loc]) from err
        if len(outputs) != len(op.outputs):
            raise ForeignCallFailedError(op.function, f"returned {len(outputs)} values, expected {len(op.outputs)}", [loc])
        for w, v in zip(op.outputs, outputs):
            self._insert(w, v, loc)


def execute_program(program: Program, initial_witness: WitnessMap,
                    blackbox: Bn254BlackBoxSolver, foreign_calls: ForeignCallExecutor) -> WitnessStack:
    """
    Solve the entry function (and everything it calls). Raises SolverError on failure.
    The returned stack has the entry function's witness on top; empty program -> empty stack.
    """
    stack = WitnessStack()
    if not program.functions:
        return stack
    main = ACVM(program, 0, initial_witness, blackbox, foreign_calls, stack)
    witness = main.solve()
    stack.push(0, witness)
    logger.debug("solved %d frame(s), main has %d witnesses", len(stack), len(witness))
    return stack
