from pathlib import Path

import pytest

from noirexec.acvm.expression import Expression
from noirexec.acvm.opcodes import AssertZero, Circuit, Program
from noirexec.core.abi import Abi, AbiParameter, AbiReturnType, AbiType
from noirexec.core.artifact import ARTIFACT_VERSION, ProgramArtifact, save_artifact

FIXTURES = Path(__file__).parent / "fixtures"

FIELD = AbiType("field")


def add_expr(*terms, q_c=0):
    """Linear expression from (coeff, witness) pairs."""
    return Expression(linear_combinations=tuple(terms), q_c=q_c)


def make_artifact(functions, parameters=(), return_type=None, error_types=None,
                  debug_symbols=None, file_map=None, version=ARTIFACT_VERSION):
    abi = Abi(
        parameters=[AbiParameter(n, t) for n, t in parameters],
        return_type=AbiReturnType(return_type) if return_type is not None else None,
        error_types=error_types or {},
    )
    return ProgramArtifact(
        noir_version=f"{version}+noirexec",
        abi=abi,
        bytecode=Program(list(functions)),
        debug_symbols=debug_symbols or [],
        file_map=file_map or {},
        names=["main"],
    )


def sum_circuit():
    # w2 = w0 + w1
    return Circuit(
        current_witness_index=2,
        opcodes=[AssertZero(add_expr((1, 0), (1, 1), (-1, 2)))],
        private_parameters=[0, 1],
        return_values=[2],
    )


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "demo"
    root.mkdir()
    (root / "Nargo.toml").write_text('[package]\nname = "demo"\ntype = "bin"\n')
    return root


@pytest.fixture
def export_fn(project):
    def _export(name, artifact):
        save_artifact(project / "export" / f"{name}.json", artifact)
    return _export
