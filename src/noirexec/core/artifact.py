from __future__ import annotations
import base64
import binascii
import gzip
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from packaging.version import InvalidVersion, Version

from ..acvm.opcodes import Program
from .abi import Abi
from .errors import IoError, SerdeError

logger = logging.getLogger(__name__)

# Artifact layout follows `nargo export` (abi, debug symbols, file map), but the
# bytecode is noirexec's own encoding: base64(gzip(JSON program)), not bincode ACIR.
# Artifacts carrying this version line are readable.
ARTIFACT_VERSION = "0.36.0"

@dataclass(frozen=True)
class Location:
    start: int      # byte offsets into the file's source
    end: int
    file: int

@dataclass
class DebugInfo:
    # opcode index -> source call stack, outermost first
    locations: Dict[int, List[Location]] = field(default_factory=dict)

@dataclass
class DebugFile:
    source: str
    path: str

@dataclass
class ProgramArtifact:
    noir_version: str
    abi: Abi
    bytecode: Program
    debug_symbols: List[DebugInfo] = field(default_factory=list)
    file_map: Dict[int, DebugFile] = field(default_factory=dict)
    names: List[str] = field(default_factory=list)
    hash: int = 0


def encode_bytecode(program: Program) -> str:
    raw = json.dumps(program.to_json(), separators=(",", ":")).encode("utf-8")
    return base64.b64encode(gzip.compress(raw, mtime=0)).decode("ascii")

def decode_bytecode(s: str) -> Program:
    """base64 -> gzip -> JSON program"""
    raw = gzip.decompress(base64.b64decode(s, validate=True))
    return Program.from_json(json.loads(raw))

def _debug_from_json(obj: Optional[Dict[str, Any]]) -> List[DebugInfo]:
    out = []
    for info in (obj or {}).get("debug_infos", []):
        locs = {}
        for op_idx, stack in info.get("locations", {}).items():
            locs[int(op_idx)] = [Location(int(l["span"]["start"]), int(l["span"]["end"]), int(l["file"]))
                                 for l in stack]
        out.append(DebugInfo(locs))
    return out

def _file_map_from_json(obj: Optional[Dict[str, Any]]) -> Dict[int, DebugFile]:
    out = {}
    for k, v in (obj or {}).items():
        if not isinstance(v.get("source"), str) or not isinstance(v.get("path"), str):
            raise ValueError(f"file_map entry {k!r} needs string `source` and `path`")
        out[int(k)] = DebugFile(v["source"], v["path"])
    return out

def _debug_to_json(infos: List[DebugInfo]) -> Dict[str, Any]:
    return {"debug_infos": [
        {"locations": {str(i): [{"span": {"start": l.start, "end": l.end}, "file": l.file} for l in stack]
                       for i, stack in info.locations.items()}}
        for info in infos
    ]}

def check_version(noir_version: str, supported: str = ARTIFACT_VERSION):
    """Artifacts are compatible within the same major.minor release line."""
    try:
        got = Version(noir_version.split("+")[0])
    except InvalidVersion as err:
        raise SerdeError(f"unparseable noir_version {noir_version!r}") from err
    want = Version(supported)
    if got.release[:2] != want.release[:2]:
        raise SerdeError(
            f"artifact was exported by nargo {noir_version}, this runner reads {supported} artifacts; "
            "re-export the function with a compatible toolchain"
        )

def artifact_from_json(obj: Dict[str, Any]) -> ProgramArtifact:
    if not isinstance(obj, dict):
        raise SerdeError(f"expected a JSON object, got {type(obj).__name__}")
    if "noir_version" not in obj:
        raise SerdeError("missing `noir_version`; was the program exported with `nargo export`?")
    check_version(str(obj["noir_version"]))
    try:
        return ProgramArtifact(
            noir_version=obj["noir_version"],
            abi=Abi.from_json(obj["abi"]),
            bytecode=decode_bytecode(obj["bytecode"]),
            debug_symbols=_debug_from_json(obj.get("debug_symbols")),
            file_map=_file_map_from_json(obj.get("file_map")),
            names=list(obj.get("names", [])),
            hash=int(obj.get("hash", 0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError, binascii.Error, OSError, EOFError) as err:
        # OSError/EOFError: broken gzip stream; json/base64 errors are ValueErrors
        raise SerdeError(f"malformed artifact: {err!r}") from err

def artifact_to_json(a: ProgramArtifact) -> Dict[str, Any]:
    return {
        "noir_version": a.noir_version,
        "hash": a.hash,
        "abi": a.abi.to_json(),
        "bytecode": encode_bytecode(a.bytecode),
        "debug_symbols": _debug_to_json(a.debug_symbols),
        "file_map": {str(k): {"source": f.source, "path": f.path} for k, f in a.file_map.items()},
        "names": list(a.names),
    }

def load_artifact(path: str | Path) -> ProgramArtifact:
    path = Path(path)
    try:
        with path.open("rb") as f:
            raw = f.read()
    except OSError as err:
        raise IoError(path, err.strerror or str(err)) from err
    try:
        obj = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as err:
        raise SerdeError(f"{path} is not valid JSON: {err}") from err
    artifact = artifact_from_json(obj)
    logger.debug("loaded %s (noir %s, %d function(s))", path, artifact.noir_version,
                 len(artifact.bytecode.functions))
    return artifact

def save_artifact(path: str | Path, artifact: ProgramArtifact):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(artifact_to_json(artifact), indent=2))
