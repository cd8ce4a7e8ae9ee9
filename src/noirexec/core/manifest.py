from __future__ import annotations
import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from .errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILE = "Nargo.toml"
EXPORT_DIR = "export"
PACKAGE_TYPES = ("bin", "lib", "contract")

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

@dataclass
class Package:
    name: str
    root_dir: Path
    package_type: str
    compiler_version: Optional[str] = None
    dependencies: Dict[str, Any] = field(default_factory=dict)

@dataclass
class Workspace:
    root_dir: Path
    members: List[Package]
    selected: List[Package]

    def export_directory_path(self) -> Path:
        return self.root_dir / EXPORT_DIR


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as err:
        raise ManifestError(f"cannot read {path}: {err.strerror or err}") from err
    except tomllib.TOMLDecodeError as err:
        raise ManifestError(f"{path} is not valid TOML: {err}") from err

def _workspace_table(manifest: Path, toml: Dict[str, Any]) -> Dict[str, Any]:
    ws = toml["workspace"]
    if not isinstance(ws, dict):
        raise ManifestError(f"{manifest}: [workspace] must be a table")
    return ws

def _workspace_members(manifest: Path, toml: Dict[str, Any]) -> List[Path]:
    members = _workspace_table(manifest, toml).get("members", [])
    if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
        raise ManifestError(f"{manifest}: `workspace.members` must be a list of paths")
    return [(manifest.parent / m).resolve() for m in members]

def find_package_manifest(current_path: str | Path) -> Path:
    """
    Nearest Nargo.toml at or above `current_path`. When an enclosing workspace
    lists that package among its members, the workspace manifest is returned instead.
    """
    start = Path(current_path).resolve()
    if not start.is_dir():
        raise ManifestError(f"{current_path} is not a directory")

    package_manifest = None
    for d in [start, *start.parents]:
        if (d / MANIFEST_FILE).is_file():
            package_manifest = d / MANIFEST_FILE
            break
    if package_manifest is None:
        raise ManifestError(f"cannot find {MANIFEST_FILE} in {start} or any parent directory")

    for d in package_manifest.parent.parents:
        candidate = d / MANIFEST_FILE
        if not candidate.is_file():
            continue
        toml = _read_toml(candidate)
        if "workspace" in toml and package_manifest.parent in _workspace_members(candidate, toml):
            return candidate
    return package_manifest

def _check_compiler_version(manifest: Path, requirement: str, current: str):
    req = requirement.strip()
    if re.match(r"^\d+(\.\d+)*$", req):
        # bare version behaves like a caret requirement within the release line
        req = f"~={req}" if req.count(".") >= 1 else f">={req}"
    try:
        spec = SpecifierSet(req)
    except InvalidSpecifier as err:
        raise ManifestError(f"{manifest}: invalid compiler_version {requirement!r}") from err
    if Version(current) not in spec:
        raise ManifestError(
            f"{manifest}: package requires compiler version {requirement}, runner supports {current}"
        )

def _package_from_toml(manifest: Path, toml: Dict[str, Any], current_version: Optional[str]) -> Package:
    if "workspace" in toml:
        raise ManifestError(f"{manifest}: nested workspaces are not supported")
    pkg = toml.get("package")
    if not isinstance(pkg, dict):
        raise ManifestError(f"{manifest}: missing [package] table")
    name = pkg.get("name")
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise ManifestError(f"{manifest}: invalid or missing package name {name!r}")
    ptype = pkg.get("type")
    if ptype is None:
        raise ManifestError(f"{manifest}: missing package type (one of {', '.join(PACKAGE_TYPES)})")
    if ptype not in PACKAGE_TYPES:
        raise ManifestError(f"{manifest}: unknown package type {ptype!r}")
    cv = pkg.get("compiler_version")
    if cv is not None and current_version is not None:
        _check_compiler_version(manifest, str(cv), current_version)
    deps = toml.get("dependencies", {})
    if not isinstance(deps, dict):
        raise ManifestError(f"{manifest}: [dependencies] must be a table")
    return Package(name, manifest.parent, ptype, cv, deps)

def resolve_workspace_from_toml(manifest_path: str | Path, package_name: Optional[str] = None,
                                current_compiler_version: Optional[str] = None) -> Workspace:
    """
    Resolve a package or workspace manifest. `package_name` narrows the
    selection to one member; None selects every member.
    """
    manifest = Path(manifest_path).resolve()
    toml = _read_toml(manifest)
    has_pkg, has_ws = "package" in toml, "workspace" in toml
    if has_pkg == has_ws:
        raise ManifestError(f"{manifest}: expected exactly one of [package] or [workspace]")

    if has_pkg:
        members = [_package_from_toml(manifest, toml, current_compiler_version)]
    else:
        members = []
        for d in _workspace_members(manifest, toml):
            member_manifest = d / MANIFEST_FILE
            if not member_manifest.is_file():
                raise ManifestError(f"{manifest}: workspace member {d} has no {MANIFEST_FILE}")
            members.append(_package_from_toml(member_manifest, _read_toml(member_manifest),
                                              current_compiler_version))
        default = _workspace_table(manifest, toml).get("default-member")
        if default is not None and not isinstance(default, str):
            raise ManifestError(f"{manifest}: `workspace.default-member` must be a path")
        if default is not None and (manifest.parent / default).resolve() not in [m.root_dir for m in members]:
            raise ManifestError(f"{manifest}: default-member {default!r} is not a workspace member")

    if package_name is None:
        selected = list(members)
    else:
        selected = [m for m in members if m.name == package_name]
        if not selected:
            raise ManifestError(f"{manifest}: no package named {package_name!r}")

    logger.debug("resolved workspace %s with %d member(s)", manifest.parent, len(members))
    return Workspace(manifest.parent, members, selected)
