"""AquaSculpt CLI -- thin wrapper over SculptPipeline."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click

from aquasculpt.anatomy.labels import PartLabel
from aquasculpt.engine import (
    CreatureConfig,
    SculptPipeline,
    build_observers,
    build_stages,
    load_config,
    serialize_config,
)
from aquasculpt.io import read_mesh_h5
from aquasculpt.mesh import summarize_mesh

_FORMATS: dict[str, tuple[str, ...]] = {
    "h5": ("h5",),
    "obj": ("obj",),
    "both": ("h5", "obj"),
}


def _label_name(label: int) -> str:
    try:
        return PartLabel(label).name
    except ValueError:
        return str(label)


def _parse_overrides(overrides: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=val`` strings into a dict, rejecting items without ``=``."""
    cli_overrides: dict[str, Any] = {}
    for item in overrides:
        key, sep, value = item.partition("=")
        if not key or not sep:
            raise click.BadParameter(
                f"expected key=val, got {item!r}", param_hint="--set"
            )
        cli_overrides[key] = value
    return cli_overrides


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------


@click.group()
def cli() -> None:
    """AquaSculpt -- procedural fish mesh generation."""


@cli.command()
@click.option(
    "--config",
    "-c",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to creature config YAML.",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    help="Config override as key=val (e.g. --set body.length=1.2).",
)
@click.option("--seed", type=int, default=None, help="Seed for per-instance jitter.")
@click.option(
    "--format",
    "export_format",
    type=click.Choice(sorted(_FORMATS), case_sensitive=False),
    default="h5",
    help="Mesh export format.",
)
@click.option("--preview", is_flag=True, default=False, help="Also save preview.png.")
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Fail on degenerate geometry instead of warning.",
)
@click.option(
    "--output-dir",
    "-o",
    default=None,
    type=click.Path(file_okay=False),
    help="Output directory (default: ~/aquasculpt/runs/<run_id>).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Verbose output.")
def generate(
    config: str | None,
    overrides: tuple[str, ...],
    seed: int | None,
    export_format: str,
    preview: bool,
    strict: bool,
    output_dir: str | None,
    verbose: bool,
) -> None:
    """Generate one creature mesh and export it."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli_overrides = _parse_overrides(overrides)
    if seed is not None:
        cli_overrides["seed"] = seed
    if strict:
        cli_overrides["strict"] = True
    if output_dir is not None:
        cli_overrides["output_dir"] = output_dir

    try:
        creature_config = load_config(yaml_path=config, cli_overrides=cli_overrides)
        stages = build_stages(creature_config)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    observers = build_observers(
        creature_config,
        verbose=verbose,
        total_stages=len(stages),
        formats=_FORMATS[export_format.lower()],
        preview=preview,
    )
    pipeline = SculptPipeline(stages=stages, config=creature_config, observers=observers)

    try:
        pipeline.run()
    except Exception as exc:
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)


@cli.command("init-config")
@click.option(
    "--output",
    "-o",
    default="aquasculpt.yaml",
    type=click.Path(),
    help="Output file path (default: aquasculpt.yaml).",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite existing file.",
)
def init_config(output: str, force: bool) -> None:
    """Write a template YAML config holding every default."""
    output_path = Path(output)
    if output_path.exists() and not force:
        raise click.ClickException(
            f"'{output}' already exists. Use --force to overwrite."
        )
    output_path.write_text(serialize_config(CreatureConfig()), encoding="utf-8")
    click.echo(f"Config written to {output}")


@cli.command()
@click.argument("mesh_file", type=click.Path(exists=True, dir_okay=False))
def inspect(mesh_file: str) -> None:
    """Print counts, bounds and topology checks for an exported mesh.h5."""
    try:
        buffers, attrs = read_mesh_h5(mesh_file)
    except (KeyError, OSError) as exc:
        raise click.ClickException(f"Cannot read mesh from {mesh_file}: {exc}") from exc

    summary = summarize_mesh(buffers)
    lo, hi = summary.bounds_min, summary.bounds_max
    click.echo(f"run_id:      {attrs.get('run_id', '')}")
    click.echo(f"vertices:    {summary.vertex_count}")
    click.echo(f"triangles:   {summary.triangle_count}")
    click.echo(f"bounds min:  ({lo[0]:.4f}, {lo[1]:.4f}, {lo[2]:.4f})")
    click.echo(f"bounds max:  ({hi[0]:.4f}, {hi[1]:.4f}, {hi[2]:.4f})")
    click.echo(f"finite:      {summary.all_finite}")
    click.echo(f"open edges:  {summary.open_edges}")
    click.echo(f"non-manifold edges: {summary.nonmanifold_edges}")
    click.echo(f"degenerate triangles: {summary.degenerate_triangles}")
    for label, count in sorted(summary.label_counts.items()):
        click.echo(f"  {_label_name(label):<12} {count}")


def main() -> None:
    """Entry point for the ``aquasculpt`` console script."""
    cli()
