from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

import click

from ..core.fieldla import to_hex

logger = logging.getLogger(__name__)


class ForeignCallError(Exception):
    pass


class ForeignCallExecutor:
    """
    Host side of the circuit's foreign calls.

      print(newline_flag, *values)      echo values to stdout (when show_output)
      read_file(*path_bytes) -> bytes   read a file below root_path; zero-padded to
                                        the number of outputs the call site expects
    """

    def __init__(self, show_output: bool = True, root_path: Optional[Path] = None):
        self.show_output = show_output
        self.root_path = Path(root_path) if root_path is not None else None

    def execute(self, function: str, inputs: List[int], n_outputs: int) -> List[int]:
        logger.debug("foreign call %s with %d inputs", function, len(inputs))
        if function == "print":
            return self._print(inputs)
        if function == "read_file":
            return self._read_file(inputs, n_outputs)
        raise ForeignCallError(f"unknown foreign call `{function}`")

    def _print(self, inputs: List[int]) -> List[int]:
        if not inputs:
            raise ForeignCallError("print expects a newline flag")
        newline, values = inputs[0], inputs[1:]
        if self.show_output:
            click.echo(" ".join(to_hex(v) for v in values), nl=bool(newline))
        return []

    def _read_file(self, inputs: List[int], n_outputs: int) -> List[int]:
        if self.root_path is None:
            raise ForeignCallError("read_file needs a program root")
        if any(b > 0xFF for b in inputs):
            raise ForeignCallError("path must be passed as bytes")
        try:
            rel = bytes(inputs).rstrip(b"\x00").decode("utf-8")
        except UnicodeDecodeError as err:
            raise ForeignCallError(f"path is not valid UTF-8: {err}") from err
        root = self.root_path.resolve()
        target = (root / rel).resolve()
        if not target.is_relative_to(root):
            raise ForeignCallError(f"{rel} escapes the program root")
        try:
            data = target.read_bytes()
        except OSError as err:
            raise ForeignCallError(f"cannot read {rel}: {err.strerror or err}") from err
        if len(data) > n_outputs:
            raise ForeignCallError(f"{rel} has {len(data)} bytes, call site takes {n_outputs}")
        return list(data) + [0] * (n_outputs - len(data))
