"""
CLI commands for Agda binary distributions.

Thin wrappers over ``agda_bdist.core.services.bdist``.

Usage::

    agda-bdist options --input agda-version=2.6.4 --json
    agda-bdist features --input agda-version=2.6.2.2 --explain
    agda-bdist name --input bdist-name='agda-{{{agda-version}}}-{{{arch}}}'
    agda-bdist setup --from-env --artifact-dir ./artifacts
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from agda_bdist.core.config.loader import ConfigError
from agda_bdist.core.services.bdist.resolver.input_lookup import (
    CallableLookup,
    EnvironmentLookup,
    InputLookup,
    MappingLookup,
)
from agda_bdist.core.services.bdist.resolver.options_resolver import OptionsError


def _parse_inputs(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated ``--input name=value`` options."""
    inputs: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint="--input")
        inputs[key.strip()] = value
    return inputs


def _build_lookup(pairs: tuple[str, ...], from_env: bool) -> InputLookup:
    """``--input`` values, falling back to ``INPUT_*`` env vars if asked."""
    explicit = MappingLookup(_parse_inputs(pairs))
    if not from_env:
        return explicit
    env = EnvironmentLookup()

    def lookup(name: str) -> str | bool | None:
        value = explicit.lookup(name)
        return value if value is not None else env.lookup(name)

    return CallableLookup(lookup)


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _input_options(fn):
    fn = click.option(
        "--from-env", is_flag=True,
        help="Also read inputs from INPUT_<NAME> environment variables.",
    )(fn)
    fn = click.option(
        "--input", "-i", "inputs", multiple=True, metavar="NAME=VALUE",
        help="Set an input, e.g. agda-version=2.6.4 (repeatable).",
    )(fn)
    return fn


def _resolve(inputs: tuple[str, ...], from_env: bool):
    """Resolve options and detect the context, or exit with a message."""
    from agda_bdist.core.services.bdist import (
        detect_context,
        resolve_agda_version,
        resolve_options,
    )

    try:
        opts = resolve_options(_build_lookup(inputs, from_env))
        context = detect_context()
        opts = resolve_agda_version(opts, context.package_info_cache)
    except (OptionsError, ConfigError) as e:
        _fail(str(e))
    return opts, context


# ── Options ────────────────────────────────────────────────────


@click.command()
@_input_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def options(inputs: tuple[str, ...], from_env: bool, as_json: bool) -> None:
    """Resolve and validate build options."""
    from agda_bdist.core.services.bdist import resolve_options

    try:
        opts = resolve_options(_build_lookup(inputs, from_env))
    except (OptionsError, ConfigError) as e:
        _fail(str(e))

    resolved = opts.to_inputs()
    if as_json:
        click.echo(json.dumps(resolved, indent=2))
        return

    click.secho("\n⚙️  Build options:\n", fg="cyan", bold=True)
    for key, value in resolved.items():
        click.echo(f"   {key:<26} {value!r}")
    click.echo()


# ── Features ───────────────────────────────────────────────────


@click.command()
@_input_options
@click.option("--explain", is_flag=True, help="Show every clause of every rule.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def features(inputs: tuple[str, ...], from_env: bool, explain: bool, as_json: bool) -> None:
    """Show which optional build features are enabled on this platform."""
    from agda_bdist.core.services.bdist.domain.compatibility import (
        RULES,
        explain as explain_rule,
        feature_matrix,
    )

    opts, context = _resolve(inputs, from_env)
    matrix = feature_matrix(opts, context)

    if as_json:
        payload: dict = {"features": matrix}
        if explain:
            payload["clauses"] = {
                rule: dict(explain_rule(rule, opts, context)) for rule in RULES
            }
        click.echo(json.dumps(payload, indent=2))
        return

    click.secho(
        f"\n🧩 Features for Agda {opts.agda_version} on {context.arch}-{context.platform}:\n",
        fg="cyan", bold=True,
    )
    for rule, enabled in matrix.items():
        marker = click.style("✓", fg="green") if enabled else click.style("✗", fg="red")
        click.echo(f"   {marker} {rule}")
        if explain:
            for clause, holds in explain_rule(rule, opts, context):
                click.echo(f"       {'✓' if holds else '✗'} {clause}")
    click.echo()


# ── Name ───────────────────────────────────────────────────────


@click.command()
@_input_options
@click.option("--default", "use_default", is_flag=True, help="Render the probe name instead.")
def name(inputs: tuple[str, ...], from_env: bool, use_default: bool) -> None:
    """Render the distribution name."""
    from agda_bdist.core.services.bdist import bdist_name, default_bdist_name

    opts, context = _resolve(inputs, from_env)
    render = default_bdist_name if use_default else bdist_name
    click.echo(render(opts, context))


# ── Setup ──────────────────────────────────────────────────────


@click.command()
@_input_options
@click.option(
    "--artifact-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
    help="Where published artifacts are stored (default: <agda-dir>/artifacts).",
)
@click.option("--refresh-package-info", is_flag=True, help="Refresh stale Hackage data.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def setup(
    inputs: tuple[str, ...],
    from_env: bool,
    artifact_dir: Path | None,
    refresh_package_info: bool,
    as_json: bool,
) -> None:
    """Install Agda, building and publishing a bdist if needed."""
    from agda_bdist.core.services.bdist import (
        CommandError,
        LocalArtifactStore,
        VerificationError,
        detect_context,
        resolve_options,
    )
    from agda_bdist.core.services.bdist.orchestration.pipeline import PackagingPipeline
    from agda_bdist.core.services.bdist.orchestration.setup import SetupError, setup_agda

    try:
        opts = resolve_options(_build_lookup(inputs, from_env))
        context = detect_context()
    except (OptionsError, ConfigError) as e:
        _fail(str(e))

    store = LocalArtifactStore(artifact_dir) if artifact_dir else None
    pipeline = PackagingPipeline(context, store=store)
    try:
        result = setup_agda(
            opts, context,
            pipeline=pipeline,
            refresh_package_info=refresh_package_info,
        )
    except (OptionsError, SetupError, VerificationError, CommandError, OSError) as e:
        if as_json:
            click.echo(json.dumps({"ok": False, "error": str(e), "report": pipeline.report.to_dict()}, indent=2))
            sys.exit(1)
        _fail(str(e))

    if as_json:
        click.echo(json.dumps({
            "ok": True,
            "install_dir": str(result.install_dir),
            "source": result.source,
            "artifact": result.upload.model_dump(mode="json") if result.upload else None,
            "report": pipeline.report.to_dict(),
        }, indent=2))
        return

    click.secho(
        f"\n✅ Agda {result.options.agda_version} installed to {result.install_dir} "
        f"(from {result.source})",
        fg="green",
    )
    if result.upload is not None:
        click.echo(f"   📦 Artifact: {result.upload.artifact_name}")
        if result.upload.failed_items:
            click.secho(f"   ⚠️  {len(result.upload.failed_items)} files failed to upload", fg="yellow")
    click.echo()
