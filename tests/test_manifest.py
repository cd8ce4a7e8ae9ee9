import pytest

from noirexec.core.errors import ManifestError
from noirexec.core.manifest import find_package_manifest, resolve_workspace_from_toml


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_find_manifest_from_subdirectory(project):
    sub = project / "src" / "deep"
    sub.mkdir(parents=True)
    assert find_package_manifest(sub) == (project / "Nargo.toml").resolve()

def test_missing_manifest(tmp_path):
    with pytest.raises(ManifestError):
        find_package_manifest(tmp_path)

def test_missing_directory(tmp_path):
    with pytest.raises(ManifestError):
        find_package_manifest(tmp_path / "nope")

def test_package_export_directory(project):
    ws = resolve_workspace_from_toml(project / "Nargo.toml", None, "0.36.0")
    assert ws.export_directory_path() == project.resolve() / "export"
    assert [p.name for p in ws.selected] == ["demo"]
    assert ws.members[0].package_type == "bin"

def test_workspace_member_resolves_to_workspace_root(tmp_path):
    write(tmp_path / "Nargo.toml", '[workspace]\nmembers = ["crates/a", "crates/b"]\ndefault-member = "crates/a"\n')
    write(tmp_path / "crates/a/Nargo.toml", '[package]\nname = "a"\ntype = "bin"\n')
    write(tmp_path / "crates/b/Nargo.toml", '[package]\nname = "b"\ntype = "lib"\n')

    manifest = find_package_manifest(tmp_path / "crates" / "a")
    assert manifest == (tmp_path / "Nargo.toml").resolve()

    ws = resolve_workspace_from_toml(manifest)
    assert ws.export_directory_path() == tmp_path.resolve() / "export"
    assert [p.name for p in ws.members] == ["a", "b"]

    ws_b = resolve_workspace_from_toml(manifest, "b")
    assert [p.name for p in ws_b.selected] == ["b"]
    with pytest.raises(ManifestError):
        resolve_workspace_from_toml(manifest, "c")

def test_package_outside_workspace_members_stands_alone(tmp_path):
    write(tmp_path / "Nargo.toml", '[workspace]\nmembers = []\n')
    pkg = write(tmp_path / "solo/Nargo.toml", '[package]\nname = "solo"\ntype = "bin"\n')
    assert find_package_manifest(tmp_path / "solo") == pkg.resolve()

@pytest.mark.parametrize("text", [
    'this is = = not toml',
    '[package]\ntype = "bin"\n',
    '[package]\nname = "bad-name"\ntype = "bin"\n',
    '[package]\nname = "x"\n',
    '[package]\nname = "x"\ntype = "binary"\n',
    '[package]\nname = "x"\ntype = "bin"\n[workspace]\nmembers = []\n',
    '[dependencies]\n',
    'workspace = "x"\n',
    '[workspace]\nmembers = []\ndefault-member = 3\n',
    '[workspace]\nmembers = "crates/a"\n',
    'package = "x"\n',
])
def test_malformed_manifests(tmp_path, text):
    write(tmp_path / "Nargo.toml", text)
    with pytest.raises(ManifestError):
        resolve_workspace_from_toml(tmp_path / "Nargo.toml", None, "0.36.0")

def test_missing_workspace_member(tmp_path):
    write(tmp_path / "Nargo.toml", '[workspace]\nmembers = ["gone"]\n')
    with pytest.raises(ManifestError):
        resolve_workspace_from_toml(tmp_path / "Nargo.toml")

@pytest.mark.parametrize("req,ok", [
    (">=0.36.0", True),
    ("0.36.0", True),
    (">=0.30.0,<0.37", True),
    (">=0.37.0", False),
    ("0.35.1", False),
    ("not a version", False),
])
def test_compiler_version(tmp_path, req, ok):
    write(tmp_path / "Nargo.toml", f'[package]\nname = "x"\ntype = "bin"\ncompiler_version = "{req}"\n')
    if ok:
        resolve_workspace_from_toml(tmp_path / "Nargo.toml", None, "0.36.0")
    else:
        with pytest.raises(ManifestError):
            resolve_workspace_from_toml(tmp_path / "Nargo.toml", None, "0.36.0")
