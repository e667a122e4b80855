import json
import logging
from pathlib import Path

import click

from .config import GeneratorConfig
from .errors import GenerationError
from .generator import Generator
from .writer import AtomicWriter


def _template_source(declaration: dict, base_dir: Path) -> str:
    if "template" in declaration:
        return declaration["template"]
    if "template_file" in declaration:
        return (base_dir / declaration["template_file"]).read_text(encoding="utf-8")
    raise click.ClickException(f"Declaration needs a 'template' or 'template_file': {declaration}")


@click.command()
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite existing output files")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every declaration")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.argument("output", type=click.Path(file_okay=False, resolve_path=True))
def idl_to_code(force, verbose, manifest, output):
    """Generate the files of one package from the templates listed in MANIFEST."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(manifest) as f:
        spec = json.load(f)

    base_dir = Path(manifest).parent
    output_dir = Path(output)
    writer = AtomicWriter(overwrite=force)

    try:
        generator = Generator(GeneratorConfig.from_dict(spec.get("config", {})))
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    for file_spec in spec.get("files", []):
        try:
            for declaration in file_spec.get("declarations", []):
                generator.declare(
                    _template_source(declaration, base_dir),
                    declaration.get("data", {}),
                    strict=not declaration.get("ensure", False),
                )
            path = output_dir / file_spec["name"]
            with writer.open(path) as sink:
                generator.write(sink)
        except (GenerationError, OSError) as e:
            raise click.ClickException(f"{file_spec.get('name', '?')}: {e}") from e
        click.echo(f"Wrote {path}")
