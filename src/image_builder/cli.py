"""Main CLI entry point for image-builder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from .config import BuildOptions, ManifestConfig, RetryPolicy
from .docker_utils import check_docker_daemon
from .errors import ImageBuilderError
from .execute import CommandExecutor
from .identity import DockerLoginIdentity, Identity
from .orchestrator import BuildOrchestrator
from .planner import Planner


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
def cli(verbose: bool):
    """Image Builder: builds and pushes the images described by a manifest."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def create_identity(options: BuildOptions, executor: CommandExecutor, registry: Optional[str]) -> Identity:
    if options.username and options.password:
        return DockerLoginIdentity(executor, registry, options.username, options.password)
    return Identity()


@cli.command()
@click.option(
    "--manifest",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=Path("manifest.yaml"),
    help="Path to the manifest YAML.",
)
@click.option("--path", "paths", multiple=True, help="Dockerfile path pattern to build (repeatable).")
@click.option("--os-type", help="Only build platforms of this OS.")
@click.option("--architecture", help="Only build platforms of this architecture.")
@click.option("--push", is_flag=True, help="Push built images to their registry.")
@click.option("--skip-pulling", is_flag=True, help="Don't pull base images before building.")
@click.option("--retry", is_flag=True, help="Retry failed image builds.")
@click.option("--dry-run", is_flag=True, help="Print commands instead of executing them.")
@click.option("--retry-attempts", type=click.IntRange(min=1), default=5, show_default=True)
@click.option("--retry-delay", type=click.FloatRange(min=0), default=1.0, show_default=True)
@click.option("--registry-override", help="Registry to qualify repo names with.")
@click.option("--repo-prefix", help="Prefix added to every repo name.")
@click.option("--username", help="Registry user for pushing.")
@click.option("--password", help="Registry password for pushing.")
@click.option(
    "--summary-output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the build summary as JSON to this file.",
)
@click.pass_context
def build(
    ctx,
    manifest: Path,
    paths: Tuple[str, ...],
    os_type: Optional[str],
    architecture: Optional[str],
    push: bool,
    skip_pulling: bool,
    retry: bool,
    dry_run: bool,
    retry_attempts: int,
    retry_delay: float,
    registry_override: Optional[str],
    repo_prefix: Optional[str],
    username: Optional[str],
    password: Optional[str],
    summary_output: Optional[Path],
):
    """Builds the images defined in the manifest."""
    options = BuildOptions(
        push=push,
        skip_pulling=skip_pulling,
        retry=retry,
        dry_run=dry_run,
        paths=list(paths),
        os_type=os_type,
        architecture=architecture,
        registry_override=registry_override,
        repo_prefix=repo_prefix,
        username=username,
        password=password,
        retry_policy=RetryPolicy(max_attempts=retry_attempts, delay=retry_delay),
    )

    try:
        manifest_config = ManifestConfig.from_yaml(manifest)
        manifest_info = Planner(manifest_config, options, manifest.parent).plan()

        if not dry_run and not check_docker_daemon():
            click.secho("Docker daemon is not running or not accessible.", fg="red")
            ctx.exit(1)

        executor = CommandExecutor(dry_run=dry_run, retry_policy=options.retry_policy)
        identity = create_identity(
            options, executor, registry_override or manifest_config.registry
        )
        summary = BuildOrchestrator(manifest_info, options, executor=executor, identity=identity).run()
    except ImageBuilderError as e:
        click.secho(str(e), fg="red")
        ctx.exit(1)

    if summary_output:
        summary.save(summary_output)
        click.echo(f"Summary saved to: {summary_output}")


def main():
    cli(auto_envvar_prefix="IMAGE_BUILDER")


if __name__ == "__main__":
    main()
