import json, logging, tomllib
import click
from pathlib import Path
from tabulate import tabulate

from noirexec.core.artifact import load_artifact
from noirexec.core.convert import input_map_from_generic, value_tree_to_json
from noirexec.core.errors import RunnerError
from noirexec.core.witness_io import dump_witness_json
from noirexec.runner import Runner

def _read_inputs(path):
    """Inputs as JSON or TOML (Prover.toml style), keyed by parameter name."""
    p = Path(path)
    try:
        if p.suffix == ".toml":
            obj = tomllib.loads(p.read_text())
        else:
            obj = json.loads(p.read_text())
    except (ValueError, tomllib.TOMLDecodeError) as err:
        raise click.BadParameter(f"cannot parse {p}: {err}", param_hint="--inputs")
    if not isinstance(obj, dict):
        raise click.BadParameter("inputs must be an object keyed by parameter name", param_hint="--inputs")
    return obj

def _runner(program_dir, package):
    try:
        return Runner.create(program_dir, package)
    except RunnerError as err:
        raise click.ClickException(str(err))

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose):
    """noirexec command line interface"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

@cli.command(name="execute")
@click.argument("program_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("function")
@click.option("--inputs", "inputs_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON or TOML file with the function's inputs")
@click.option("--package", default=None, help="Workspace member to resolve")
@click.option("--witness-out", type=click.Path(dir_okay=False), required=False,
              help="Write the entry function's solved witness to this JSON file")
def execute_cmd(program_dir, function, inputs_path, package, witness_out):
    """Run an exported function and print its return value as JSON."""
    runner = _runner(program_dir, package)
    generic = _read_inputs(inputs_path) if inputs_path else {}
    try:
        inputs = input_map_from_generic(generic)
    except TypeError as err:
        raise click.BadParameter(str(err), param_hint="--inputs")
    try:
        result = runner.execute(function, inputs)
    except RunnerError as err:
        raise click.ClickException(str(err))

    if witness_out:
        frame = result.witness_stack.peek()
        dump_witness_json(witness_out, frame.witness if frame else {})
    if result.return_value is not None:
        click.echo(json.dumps(value_tree_to_json(result.return_value), indent=2))

@cli.command(name="inspect")
@click.argument("program_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("function")
@click.option("--package", default=None, help="Workspace member to resolve")
def inspect_cmd(program_dir, function, package):
    """Show an exported function's ABI."""
    runner = _runner(program_dir, package)
    try:
        artifact = load_artifact(runner.artifact_path(function))
    except RunnerError as err:
        raise click.ClickException(str(err))
    abi = artifact.abi
    rows = [[p.name, p.typ.describe(), p.visibility, p.typ.field_count()] for p in abi.parameters]
    if abi.return_type is not None:
        rt = abi.return_type
        rows.append(["(return)", rt.abi_type.describe(), rt.visibility, rt.abi_type.field_count()])
    click.echo(f"{function} (noir {artifact.noir_version}, {len(artifact.bytecode.functions)} function(s))")
    click.echo(tabulate(rows, headers=["Name", "Type", "Visibility", "Witnesses"], tablefmt="github"))

@cli.command(name="list")
@click.argument("program_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--package", default=None, help="Workspace member to resolve")
def list_cmd(program_dir, package):
    """List exported functions."""
    runner = _runner(program_dir, package)
    if not runner.export_root.is_dir():
        raise click.ClickException(f"{runner.export_root} does not exist; run `nargo export` first")
    for fp in sorted(runner.export_root.glob("*.json")):
        click.echo(fp.stem)


def main():
    cli(auto_envvar_prefix="NOIREXEC")

if __name__ == "__main__":
    main()
