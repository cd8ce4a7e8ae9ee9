from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .acvm.blackbox import Bn254BlackBoxSolver
from .acvm.errors import SolverError
from .acvm.foreign_calls import ForeignCallExecutor
from .acvm.solver import execute_program
from .acvm.witness import WitnessStack
from .core.artifact import ARTIFACT_VERSION, load_artifact
from .core.errors import ExecutionError
from .core.manifest import find_package_manifest, resolve_workspace_from_toml
from .core.values import InputMap, ValueTree
from .diagnostics import report_diagnostic, try_to_diagnose_runtime_error

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ExecutionResult:
    witness_stack: WitnessStack
    return_value: Optional[ValueTree]

@dataclass(frozen=True)
class Runner:
    """
    Runs functions exported with `nargo export`.

    Holds the program root (where Nargo.toml lives) and the export directory
    derived from it. Every call reloads the function's artifact from disk, so
    a Runner can be shared freely.

      runner = Runner.create("my_noir_project")
      runner.run("addition", {"x": to_value_tree(2), "y": to_value_tree(3)})
      # -> Scalar(value=5)
    """
    program_root: Path
    export_root: Path

    @classmethod
    def create(cls, program_root: str | Path, package: Optional[str] = None) -> "Runner":
        """Raises ManifestError when Nargo.toml is missing or the workspace cannot be resolved."""
        program_root = Path(program_root)
        manifest = find_package_manifest(program_root)
        workspace = resolve_workspace_from_toml(manifest, package, ARTIFACT_VERSION)
        return cls(program_root, workspace.export_directory_path())

    def artifact_path(self, function_name: str) -> Path:
        return self.export_root / f"{function_name}.json"

    def execute(self, function_name: str, input_map: InputMap) -> ExecutionResult:
        """
        Load, encode, solve and decode. Raises:
          IoError        the artifact cannot be read
          SerdeError     the artifact is malformed or from an incompatible nargo
          AbiError       inputs (or the solved outputs) don't fit the ABI
          ExecutionError the circuit could not be satisfied
        """
        artifact = load_artifact(self.artifact_path(function_name))
        initial_witness = artifact.abi.encode(input_map)
        logger.debug("%s: encoded %d input witness(es)", function_name, len(initial_witness))

        try:
            witness_stack = execute_program(
                artifact.bytecode,
                initial_witness,
                Bn254BlackBoxSolver(),
                ForeignCallExecutor(show_output=True, root_path=self.program_root),
            )
        except SolverError as err:
            diagnostic = try_to_diagnose_runtime_error(err, artifact.abi, artifact.debug_symbols,
                                                       artifact.file_map)
            if diagnostic is not None:
                report_diagnostic(diagnostic)
                message = diagnostic.render()
            else:
                message = str(err)
            # internal solver types stay behind this boundary
            raise ExecutionError(message, diagnostic) from None

        frame = witness_stack.peek()
        if frame is None:
            return ExecutionResult(witness_stack, None)
        _, return_value = artifact.abi.decode(frame.witness)
        return ExecutionResult(witness_stack, return_value)

    def run(self, function_name: str, input_map: InputMap) -> Optional[ValueTree]:
        """Return value of `function_name`, or None for functions without one."""
        return self.execute(function_name, input_map).return_value
