"""Command-line interface for deploying garp sites.

Example:
    garp deploy --target rsync --rsync-host example.com --rsync-path /var/www --dry-run
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import click

from .build import SiteBuilder
from .config import find_project_root, load_config_model
from .deploy import (
    DeploymentConfig,
    DeploymentHistory,
    DeploymentManager,
    DeploymentStrategy,
    EnvironmentConfig,
    EnvironmentStore,
    ValidationOptions,
    parse_config_values,
    validate_deployment,
)
from .errors import EXIT_GENERAL_ERROR, DeploymentError, GarpError, format_error
from .logging_config import get_logger, setup_logging
from .schema import GarpConfig

logger = get_logger(__name__)

SENSITIVE_MARKERS = ("key", "token", "secret", "password")


@dataclass
class CLIContext:
    project_root: Path
    settings: GarpConfig
    log_json: bool
    debug: bool = False

    @property
    def state_dir(self) -> Path:
        state_dir = self.settings.general.state_dir
        return state_dir if state_dir.is_absolute() else self.project_root / state_dir

    def configure_logging(self, level: int) -> None:
        setup_logging(level=level, log_dir=self.state_dir / "logs", enable_json=self.log_json)

    def validation_options(self) -> ValidationOptions:
        return ValidationOptions(
            max_file_size=self.settings.validation.max_file_size,
            required_files=list(self.settings.validation.required_files),
        )


def _fail(exc: BaseException) -> NoReturn:
    click.echo(format_error(exc), err=True)
    sys.exit(exc.exit_code if isinstance(exc, GarpError) else EXIT_GENERAL_ERROR)


def _redact(key: str, value: str) -> str:
    if any(marker in key.lower() for marker in SENSITIVE_MARKERS):
        return "[redacted]"
    return value


@click.group("garp", help="Deploy static sites built with garp")
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (defaults to the nearest directory with garp.toml or .garp/)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Extra TOML configuration file",
)
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.option("--log-json", is_flag=True, help="Also write structured JSON logs under .garp/logs")
@click.pass_context
def cli(
    ctx: click.Context,
    project_dir: Optional[Path],
    config_path: Optional[Path],
    debug: bool,
    log_json: bool,
) -> None:
    project_root = (project_dir or find_project_root()).resolve()
    try:
        settings = load_config_model(project_root=project_root, config_path=config_path)
    except GarpError as exc:
        _fail(exc)
    obj = CLIContext(project_root=project_root, settings=settings, log_json=log_json, debug=debug)
    obj.configure_logging(logging.DEBUG if debug else logging.WARNING)
    ctx.obj = obj


@cli.command("deploy", help="Deploy the site")
@click.option("--target", default=None, help="Deployment strategy (git, rsync, netlify, cloudflare)")
@click.option("--env", "env_name", default=None, help="Load settings from a saved deploy-config environment")
@click.option("--dry-run", is_flag=True, help="Show what would be deployed without deploying")
@click.option("--build/--no-build", "build_first", default=True, show_default=True, help="Run build before deployment")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed deployment output")
@click.option("--skip-validation", is_flag=True, help="Skip connection validation")
@click.option("--skip-content-check", is_flag=True, help="Skip content validation")
@click.option("--git-remote", default=None, help="Git remote for deployment [default: origin]")
@click.option("--git-branch", default=None, help="Git branch (defaults to current branch)")
@click.option("--rsync-host", default=None, help="Rsync target host")
@click.option("--rsync-user", default=None, help="Rsync user")
@click.option("--rsync-path", default=None, help="Rsync target path")
@click.option("--exclude", "excludes", multiple=True, help="Extra rsync exclude pattern (repeatable)")
@click.option("--api-key", default=None, envvar="GARP_API_KEY", help="API key for static hosting platform")
@click.option("--project-id", default=None, help="Project/account ID for static hosting platform")
@click.option("--site-id", default=None, help="Site ID or project name for static hosting platform")
@click.pass_obj
def deploy_command(
    obj: CLIContext,
    target: Optional[str],
    env_name: Optional[str],
    dry_run: bool,
    build_first: bool,
    verbose: bool,
    skip_validation: bool,
    skip_content_check: bool,
    git_remote: Optional[str],
    git_branch: Optional[str],
    rsync_host: Optional[str],
    rsync_user: Optional[str],
    rsync_path: Optional[str],
    excludes: tuple[str, ...],
    api_key: Optional[str],
    project_id: Optional[str],
    site_id: Optional[str],
) -> None:
    """Deploy the built site with the selected strategy."""
    if verbose and not obj.debug:
        obj.configure_logging(logging.INFO)

    settings = obj.settings
    overrides = {
        "dry_run": dry_run,
        "verbose": verbose,
        "build_first": build_first,
        "skip_validation": skip_validation,
        "skip_content_check": skip_content_check,
        "git_remote": git_remote,
        "git_branch": git_branch,
        "rsync_host": rsync_host,
        "rsync_user": rsync_user,
        "rsync_path": rsync_path,
        "rsync_excludes": tuple(excludes) if excludes else None,
        "api_key": api_key,
        "project_id": project_id,
        "site_id": site_id,
        "project_root": obj.project_root,
        "transfer_timeout": settings.deploy.transfer_timeout,
        "probe_timeout": settings.deploy.probe_timeout,
    }

    try:
        if env_name:
            environment = EnvironmentStore(obj.state_dir).get_environment(env_name)
            if "source_dir" not in environment.config:
                overrides["source_dir"] = settings.general.output_dir
            if target:
                overrides["strategy"] = DeploymentStrategy.parse(target)
            config = DeploymentConfig.from_environment(environment, **overrides)
        else:
            strategy = DeploymentStrategy.parse(target or settings.deploy.default_strategy)
            values = {key: value for key, value in overrides.items() if value is not None}
            config = DeploymentConfig(
                strategy=strategy,
                target=target or "",
                source_dir=settings.general.output_dir,
                **values,
            )
    except KeyError as exc:
        click.echo(f"Error: {exc.args[0]}", err=True)
        sys.exit(EXIT_GENERAL_ERROR)
    except GarpError as exc:
        _fail(exc)

    manager = DeploymentManager(
        SiteBuilder(obj.project_root, settings.build.commands),
        state_dir=obj.state_dir,
        validation_options=obj.validation_options(),
        history_limit=settings.deploy.history_limit,
    )

    try:
        manager.validate(config)
    except GarpError as exc:
        click.echo("Deployment validation failed", err=True)
        _fail(exc)

    if verbose:
        click.echo(f"🚀 Starting deployment using {config.strategy.value} strategy")

    try:
        result = manager.deploy(config)
    except DeploymentError as exc:
        click.echo(f"❌ Deployment failed after {exc.result.duration:.2f}s", err=True)
        for message in exc.result.errors:
            click.echo(f"  Error: {message}", err=True)
        _fail(exc)

    click.echo(f"✅ Deployment completed successfully in {result.duration:.2f}s")
    if result.build_executed:
        click.echo("  🔨 Build executed")
    for message in result.messages:
        click.echo(f"  {message}")
    if result.url:
        click.echo(f"  🌐 URL: {result.url}")


@cli.command("validate", help="Validate the built site without deploying")
@click.option("--no-links", is_flag=True, help="Skip internal link checks")
@click.option("--no-images", is_flag=True, help="Skip image checks")
@click.pass_obj
def validate_command(obj: CLIContext, no_links: bool, no_images: bool) -> None:
    """Run the pre-deployment content checks on the output directory."""
    options = obj.validation_options()
    options.check_links = not no_links
    options.check_images = not no_images

    output_dir = obj.settings.general.output_dir
    source = output_dir if output_dir.is_absolute() else obj.project_root / output_dir
    try:
        result = validate_deployment(source, options)
    except GarpError as exc:
        _fail(exc)

    summary = result.summary()
    click.echo(f"Files: {summary['files']} ({summary['total_size']} bytes)")
    if result.largest_file:
        click.echo(f"Largest: {result.largest_file} ({result.largest_size} bytes)")
    for issue in result.issues:
        location = issue.file if issue.line_number is None else f"{issue.file}:{issue.line_number}"
        click.echo(f"  {issue.type.value.upper()} [{issue.category.value}]: {issue.message} (in {location})")
    click.echo(f"Errors: {summary['errors']}  Warnings: {summary['warnings']}")

    if not result.success:
        sys.exit(1)


@cli.command("deploy-history", help="Show deployment history")
@click.option("--limit", default=10, show_default=True, help="Number of recent deployments to show")
@click.pass_obj
def history_command(obj: CLIContext, limit: int) -> None:
    try:
        history = DeploymentHistory(obj.state_dir, limit=obj.settings.deploy.history_limit)
    except GarpError as exc:
        _fail(exc)

    recent = history.get_recent_deployments(limit)
    if not recent:
        click.echo("No deployments found.")
        return

    click.echo(f"Recent deployments (showing {len(recent)}):\n")
    for record in recent:
        click.echo(f"ID: {record.id}")
        click.echo(f"Time: {record.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
        click.echo(f"Strategy: {record.strategy}")
        if record.target:
            click.echo(f"Target: {record.target}")
        click.echo(f"Status: {'✅ SUCCESS' if record.success else '❌ FAILED'}")
        click.echo(f"Duration: {record.duration:.2f}s")
        if record.url:
            click.echo(f"URL: {record.url}")
        if record.git_branch:
            click.echo(f"Git Branch: {record.git_branch}")
        if record.git_commit:
            click.echo(f"Git Commit: {record.git_commit}")
        if record.messages:
            click.echo("Messages:")
            for message in record.messages:
                click.echo(f"  • {message}")
        if record.errors:
            click.echo("Errors:")
            for error in record.errors:
                click.echo(f"  ⚠️  {error}")
        click.echo()


@cli.group("deploy-config", help="Manage deployment environment configurations")
def deploy_config_group() -> None:
    pass


def _environment_store(obj: CLIContext) -> EnvironmentStore:
    try:
        return EnvironmentStore(obj.state_dir)
    except GarpError as exc:
        _fail(exc)


@deploy_config_group.command("set", help="Set deployment configuration for an environment")
@click.argument("name")
@click.option("--strategy", required=True, help="Deployment strategy (git, rsync, netlify, cloudflare)")
@click.option("--config", "values", multiple=True, help="key=value setting (repeatable)")
@click.pass_obj
def config_set_command(obj: CLIContext, name: str, strategy: str, values: tuple[str, ...]) -> None:
    try:
        parsed_strategy = DeploymentStrategy.parse(strategy)
        config_map = parse_config_values(list(values))
    except GarpError as exc:
        _fail(exc)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc

    store = _environment_store(obj)
    try:
        store.set_environment(
            name, EnvironmentConfig(strategy=parsed_strategy.value, config=config_map)
        )
    except GarpError as exc:
        _fail(exc)
    click.echo(f"✅ Configuration saved for environment '{name}'")


@deploy_config_group.command("get", help="Show deployment configuration for an environment")
@click.argument("name")
@click.pass_obj
def config_get_command(obj: CLIContext, name: str) -> None:
    store = _environment_store(obj)
    try:
        environment = store.get_environment(name)
    except KeyError as exc:
        click.echo(f"Error: {exc.args[0]}", err=True)
        sys.exit(EXIT_GENERAL_ERROR)

    click.echo(f"Environment: {environment.name}")
    click.echo(f"Strategy: {environment.strategy}")
    click.echo("Configuration:")
    for key, value in sorted(environment.config.items()):
        click.echo(f"  {key}: {_redact(key, value)}")


@deploy_config_group.command("list", help="List configured environments")
@click.pass_obj
def config_list_command(obj: CLIContext) -> None:
    store = _environment_store(obj)
    names = store.list_environments()
    if not names:
        click.echo("No deployment configurations found.")
        return
    click.echo("Configured environments:")
    for name in names:
        click.echo(f"  {name} ({store.get_environment(name).strategy})")


@deploy_config_group.command("remove", help="Remove deployment configuration")
@click.argument("name")
@click.pass_obj
def config_remove_command(obj: CLIContext, name: str) -> None:
    store = _environment_store(obj)
    try:
        existed = store.remove_environment(name)
    except GarpError as exc:
        _fail(exc)
    if existed:
        click.echo(f"✅ Configuration removed for environment '{name}'")
    else:
        click.echo(f"No configuration named '{name}'; nothing removed")


@cli.command("rollback", help="Show how to roll back to a previous deployment")
@click.argument("deployment_id", required=False)
@click.option("--dry-run", is_flag=True, help="Only show the target deployment")
@click.pass_obj
def rollback_command(obj: CLIContext, deployment_id: Optional[str], dry_run: bool) -> None:
    """Resolve a previous deployment and print rollback instructions.

    Without an ID the latest successful deployment is used. Nothing is
    pushed or synced; the steps are printed for the user to run.
    """
    try:
        history = DeploymentHistory(obj.state_dir)
    except GarpError as exc:
        _fail(exc)

    try:
        if deployment_id:
            record = history.get_deployment_by_id(deployment_id)
        else:
            record = history.get_latest_deployment()
    except LookupError as exc:
        click.echo(f"Error: {exc.args[0]}", err=True)
        sys.exit(EXIT_GENERAL_ERROR)

    if not record.success:
        click.echo(f"Error: cannot rollback to failed deployment {record.id}", err=True)
        sys.exit(EXIT_GENERAL_ERROR)

    click.echo(f"🔄 Rolling back to deployment {record.id}")
    click.echo(
        f"Target: {record.strategy} ({record.timestamp.astimezone().strftime('%Y-%m-%d %H:%M:%S')})"
    )

    if dry_run:
        click.echo("🧪 Dry run - no actual rollback will be performed")
        return

    if record.strategy == DeploymentStrategy.GIT.value:
        if not record.git_commit:
            click.echo("Error: no Git commit information available for rollback", err=True)
            sys.exit(EXIT_GENERAL_ERROR)
        click.echo(f"🔄 Rolling back Git deployment to commit {record.git_commit}")
        click.echo("⚠️  Git rollback requires manual intervention:")
        click.echo(f"1. git checkout {record.git_commit}")
        click.echo("2. Review the changes")
        click.echo("3. Create a new commit or force push if appropriate")
        click.echo("4. Run 'garp deploy' to deploy the rolled-back version")
        return

    click.echo("⚠️  Automatic rollback is not available for this deployment strategy")
    if record.git_commit:
        click.echo(f"Suggested action: check out {record.git_commit}, rebuild and run 'garp deploy' again")
    else:
        click.echo("Suggested action: Manually revert your changes and run 'garp deploy' again")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
