from __future__ import annotations
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..diagnostics import CircuitDiagnostic


class RunnerError(Exception):
    """Base class for everything `Runner.create` and `Runner.run` can raise."""


class ManifestError(RunnerError):
    """`Nargo.toml` missing or malformed, or the workspace could not be resolved."""


class IoError(RunnerError):
    """An exported artifact could not be read from disk."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"cannot read {path}: {reason}")
        self.path = Path(path)


class SerdeError(RunnerError):
    """
    An artifact could not be deserialized. Usually one of:
      - it was exported by an incompatible nargo version
      - the program was never exported (`nargo export`) and the file is something else
    """


class AbiError(RunnerError):
    """Inputs or outputs do not fit the function's declared interface."""


class MissingParamError(AbiError):
    def __init__(self, name: str):
        super().__init__(f"missing value for parameter `{name}`")
        self.name = name


class UnexpectedParamsError(AbiError):
    def __init__(self, names: List[str]):
        super().__init__("unexpected parameters: " + ", ".join(f"`{n}`" for n in names))
        self.names = list(names)


class TypeMismatchError(AbiError):
    def __init__(self, path: str, expected: str, got: str):
        super().__init__(f"type mismatch at `{path}`: expected {expected}, got {got}")
        self.path = path


class InputOutsideRangeError(AbiError):
    def __init__(self, path: str, value: int, expected: str):
        super().__init__(f"value {value} at `{path}` does not fit {expected}")
        self.path = path
        self.value = value


class MissingWitnessValueError(AbiError):
    def __init__(self, name: str, index: int):
        super().__init__(f"witness {index} for parameter `{name}` has no value")
        self.name = name
        self.index = index


class ExecutionError(RunnerError):
    """
    The solver could not satisfy the circuit. `message` is always displayable;
    `diagnostic` is set when the failure could be mapped back to source.
    """

    def __init__(self, message: str, diagnostic: Optional["CircuitDiagnostic"] = None):
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic
