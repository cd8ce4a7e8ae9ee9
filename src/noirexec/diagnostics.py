from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .acvm.errors import SolverError, UnsatisfiedConstraintError
from .core.abi import Abi
from .core.artifact import DebugFile, DebugInfo, Location

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class SourceLocation:
    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"

@dataclass(frozen=True)
class CircuitDiagnostic:
    """Where and why a circuit failed, in source terms."""
    message: str
    location: SourceLocation
    source_line: str
    span_len: int
    call_stack: Tuple[SourceLocation, ...] = ()

    def render(self) -> str:
        gutter = " " * len(str(self.location.line))
        marker = "^" * max(1, self.span_len)
        lines = [
            f"error: {self.message}",
            f"{gutter} ┌─ {self.location}",
            f"{gutter} │",
            f"{self.location.line} │ {self.source_line}",
            f"{gutter} │ {' ' * (self.location.column - 1)}{marker}",
            f"{gutter} │",
        ]
        if self.call_stack:
            lines.append(f"{gutter} = Call stack:")
            lines += [f"{gutter}   {i}. {loc}" for i, loc in enumerate(self.call_stack, 1)]
        return "\n".join(lines)


def _resolve(loc: Location, file_map: Dict[int, DebugFile]) -> Optional[Tuple[SourceLocation, str, int]]:
    f = file_map.get(loc.file)
    if f is None:
        return None
    raw = f.source.encode("utf-8")
    # spans are byte offsets
    prefix = raw[:loc.start].decode("utf-8", errors="ignore")
    line = prefix.count("\n") + 1
    column = len(prefix) - (prefix.rfind("\n") + 1) + 1
    src_lines = f.source.splitlines()
    source_line = src_lines[line - 1] if line <= len(src_lines) else ""
    span_len = len(raw[loc.start:loc.end].decode("utf-8", errors="ignore").split("\n")[0])
    return SourceLocation(f.path, line, column), source_line, span_len

def _message(err: SolverError, abi: Abi) -> str:
    if isinstance(err, UnsatisfiedConstraintError):
        if err.payload is None:
            return "Failed constraint"
        msg = abi.error_message(err.payload)
        return f"Assertion failed: '{msg}'" if msg is not None else "Assertion failed"
    return err.reason

def try_to_diagnose_runtime_error(err: SolverError, abi: Abi, debug_symbols: List[DebugInfo],
                                  file_map: Dict[int, DebugFile]) -> Optional[CircuitDiagnostic]:
    """
    Map a solver failure back to source using the artifact's debug symbols.
    Returns None when no opcode on the call stack has a known source location.
    """
    try:
        locations: List[Location] = []
        for frame in err.call_stack:
            if 0 <= frame.function < len(debug_symbols):
                locations += debug_symbols[frame.function].locations.get(frame.opcode, [])
        resolved = [r for r in (_resolve(l, file_map) for l in locations) if r is not None]
        if not resolved:
            return None
        # innermost location is the error site
        site, source_line, span_len = resolved[-1]
        return CircuitDiagnostic(
            message=_message(err, abi),
            location=site,
            source_line=source_line,
            span_len=span_len,
            call_stack=tuple(r[0] for r in resolved),
        )
    except Exception as exc:
        logger.warning("could not diagnose execution failure: %r", exc)
        return None

def report_diagnostic(diagnostic: CircuitDiagnostic):
    logger.error("%s", diagnostic.render())
