"""Command line entry point for njgit."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from njgit import __version__
from njgit.backend.exceptions import BackendError
from njgit.backend.factory import get_backend
from njgit.config.duration import (
    DurationParseError,
    humanize_seconds,
    parse_duration,
    validate_duration_range,
)
from njgit.config.environment import EnvironmentConfig
from njgit.config.exceptions import ConfigurationError
from njgit.config.loader import load_config
from njgit.config.models import AppConfig, JobConfig
from njgit.domain.models import JobIdentity
from njgit.logging import get_logger
from njgit.logging.config import configure_logging
from njgit.nomad.auth import resolve_nomad_auth
from njgit.nomad.client import NomadClient
from njgit.nomad.exceptions import NomadError
from njgit.persistence.database import close_database, get_session, init_database
from njgit.persistence.exceptions import PersistenceError
from njgit.persistence.repositories import SyncStatusRepository
from njgit.pipeline import SyncPipeline, SyncRunResult
from njgit.revisions import (
    RevisionBrowser,
    RevisionError,
    deploy,
    format_history_line,
    github_blob_url,
    github_commit_url,
    github_commits_url,
    identity_from_path,
    is_local_backend,
)
from njgit.scheduler import SchedulerService
from njgit.utils.timestamps import format_commit_date

logger = get_logger(__name__, component="cli")

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > Environment > Config.

    Args:
        config_path: Path to configuration file (None to search defaults)
        log_level_override: Log level from CLI

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="njgit",
        description="Track Nomad job specifications in git",
    )
    parser.add_argument("--version", action="version", version=f"njgit {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: njgit.yaml, config.yaml or config/njgit.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVEL_CHOICES,
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    sync = subparsers.add_parser("sync", help="Sync job specifications from Nomad to git")
    sync.add_argument("--dry-run", action="store_true", help="Render documents without committing")
    sync.add_argument("--no-push", action="store_true", help="Commit without pushing")
    sync.add_argument("--jobs", default=None, help="Comma-separated job names to sync")
    sync.add_argument("--daemon", action="store_true", help="Keep running and sync periodically")
    sync.add_argument("--interval", default=None, help="Sync interval in daemon mode (e.g., 15m)")
    sync.set_defaults(handler=cmd_sync)

    history = subparsers.add_parser("history", help="Show commit history for tracked jobs")
    _add_job_filter_arguments(history)
    history.add_argument(
        "--limit", type=int, default=20, help="Maximum number of commits (0 for unlimited)"
    )
    history.set_defaults(handler=cmd_history)

    show = subparsers.add_parser("show", help="Show a job document at a commit")
    show.add_argument("commit", help="Commit hash (short or full)")
    _add_job_filter_arguments(show)
    show.set_defaults(handler=cmd_show)

    deploy_parser = subparsers.add_parser("deploy", help="Deploy a job version from history")
    deploy_parser.add_argument("commit", help="Commit hash (short or full)")
    deploy_parser.add_argument("job", nargs="?", default=None, help="Job name (auto-detected if omitted)")
    deploy_parser.add_argument("--namespace", default="default", help="Nomad namespace")
    deploy_parser.add_argument("--region", default="global", help="Nomad region")
    deploy_parser.add_argument("--dry-run", action="store_true", help="Show what would be deployed")
    deploy_parser.set_defaults(handler=cmd_deploy)

    config = subparsers.add_parser("config", help="Inspect the configuration")
    config_sub = config.add_subparsers(dest="config_command", metavar="ACTION")
    config_sub.add_parser("show", help="Print the effective configuration").set_defaults(
        handler=cmd_config_show
    )
    config_sub.add_parser("validate", help="Validate the configuration").set_defaults(
        handler=cmd_config_validate
    )

    status = subparsers.add_parser("status", help="Show the last sync status of each job")
    status.set_defaults(handler=cmd_status)

    return parser


def _add_job_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--job", default=None, help="Job name")
    parser.add_argument("--namespace", default="default", help="Job namespace (used with --job)")
    parser.add_argument("--region", default="global", help="Job region (used with --job)")


def _job_identity(args: argparse.Namespace) -> Optional[JobIdentity]:
    if not args.job:
        return None
    return JobIdentity(
        name=args.job,
        namespace=args.namespace or "default",
        region=args.region or "global",
    )


def _split_names(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def _select_jobs(app_config: AppConfig, names: List[str]) -> List[JobConfig]:
    """Apply the --jobs filter, warning about names that are not configured."""
    selected = app_config.select_jobs(names)
    if names:
        known = {job.name for job in app_config.jobs}
        unknown = [name for name in names if name not in known]
        if unknown:
            logger.warning(
                f"Ignoring jobs not present in configuration: {', '.join(unknown)}",
                extra={"event": "sync.jobs.unknown", "jobs": unknown},
            )
        if not selected:
            raise ConfigurationError(
                "No configured jobs match --jobs",
                errors=[f"Requested: {', '.join(names)}"],
                suggestions=["Run 'njgit config show' to list configured jobs"],
            )
    return selected


def _interval_seconds(app_config: AppConfig, override: Optional[str]) -> int:
    if not override:
        return app_config.sync_interval_seconds
    try:
        seconds = parse_duration(override)
        validate_duration_range(seconds)
    except DurationParseError as e:
        raise ConfigurationError(
            f"Invalid --interval: {e}",
            suggestions=[
                "Use ISO-8601 format (e.g., PT15M) or human-readable (e.g., 15m)",
                "Ensure interval is between 1 minute and 24 hours",
            ],
        ) from e
    return seconds


def print_sync_summary(result: SyncRunResult) -> None:
    """Print a human-readable summary of a sync run to stdout."""
    if result.skipped:
        print("Sync skipped: a previous run is still in progress")
        return

    for job in result.job_results:
        if job.had_errors:
            print(f"  error      {job.display_name}: {job.error_message}")
        elif job.committed:
            commit = f" ({job.commit_id})" if job.commit_id else ""
            print(f"  {job.outcome:<10} {job.display_name}{commit}")
        elif job.outcome == "would_sync":
            print(f"  would sync {job.display_name} ({job.document_size} bytes)")
        else:
            print(f"  {job.outcome:<10} {job.display_name}")

    if result.dry_run:
        print(f"Dry run: {result.would_sync_count} of {result.total_jobs} jobs would be synced")
        return

    print(
        f"Synced {result.total_jobs} jobs: "
        f"{result.new_count} new, {result.modified_count} modified, "
        f"{result.unchanged_count} unchanged, {result.skipped_count} skipped, "
        f"{result.error_count} failed"
    )


def cmd_sync(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    job_names = _split_names(args.jobs)
    _select_jobs(app_config, job_names)
    interval_seconds = _interval_seconds(app_config, args.interval)

    auth = resolve_nomad_auth(app_config.nomad)
    client = NomadClient.from_auth(auth, timeout=app_config.nomad.timeout)
    backend = None if args.dry_run else get_backend(app_config.git)

    if app_config.status.database_url:
        init_database(app_config.status.database_url)

    logger.info(
        "Configuration loaded",
        extra={
            "event": "config.loaded",
            "job_count": len(app_config.jobs),
            "backend": backend.name if backend else "none (dry run)",
            "nomad": repr(auth),
        },
    )

    pipeline = SyncPipeline(
        app_config=app_config,
        job_source=client,
        backend=backend,
        dry_run=args.dry_run,
        no_push=args.no_push,
    )

    try:
        if args.daemon:
            return _run_daemon(pipeline, job_names or None, interval_seconds)

        result = pipeline.run_once(job_names or None)
        print_sync_summary(result)
        return 1 if result.had_errors else 0
    finally:
        client.close()
        if backend is not None:
            backend.close()
        close_database()


def _run_daemon(pipeline: SyncPipeline, job_names: Optional[List[str]], interval_seconds: int) -> int:
    start_time = time.time()
    shutdown_event = threading.Event()

    def run_scheduled_sync() -> None:
        try:
            pipeline.run_once(job_names)
        except (NomadError, BackendError) as e:
            # Fatal for this run only; the next interval retries
            logger.error(
                f"Sync run failed: {e}",
                extra={"event": "sync.run.failed", "error_type": type(e).__name__},
            )

    scheduler_service = SchedulerService(
        pipeline_callable=run_scheduled_sync,
        interval_seconds=interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        f"Syncing every {humanize_seconds(interval_seconds)}. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)

    logger.info(
        "njgit stopped",
        extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
    )
    return 0


def cmd_history(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    identity = _job_identity(args)

    if not is_local_backend(app_config.git):
        print("Using GitHub API backend - history is available on GitHub")
        if identity:
            print(f"Job: {identity.display_name}")
            print(f"View history: {github_commits_url(app_config.git, identity.path)}")
        else:
            print(f"View all commits: {github_commits_url(app_config.git)}")
        return 0

    browser = RevisionBrowser.from_config(app_config.git)
    commits = browser.history(identity, args.limit)

    if not commits:
        if identity:
            print(f"No commits found for {identity.path}", file=sys.stderr)
        else:
            print("No commits found in repository. Run 'njgit sync' to start tracking changes", file=sys.stderr)
        return 0

    for commit in commits:
        print(format_history_line(commit))
    return 0


def cmd_show(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    identity = _job_identity(args)

    if not is_local_backend(app_config.git):
        print(f"Commit {args.commit}")
        if identity:
            print(f"Job: {identity.display_name}")
            print(f"View on GitHub: {github_blob_url(app_config.git, args.commit, identity.path)}")
        else:
            print(f"View commit on GitHub: {github_commit_url(app_config.git, args.commit)}")
        return 0

    browser = RevisionBrowser.from_config(app_config.git)
    commit = browser.find_commit(args.commit)

    print(f"Commit {commit.hash}")
    print(f"Author: {commit.author} <{commit.email}>")
    print(f"Date:   {format_commit_date(commit.date)}")
    print()
    for line in commit.message.splitlines():
        print(f"    {line}")
    print()

    if identity:
        path = identity.path
    elif not commit.files:
        print("No files changed in this commit")
        return 0
    elif len(commit.files) == 1:
        path = commit.files[0]
    else:
        print("Files changed in this commit:")
        for i, file in enumerate(commit.files, 1):
            print(f"  {i}) {file}")
        print()
        print("Use --job, --namespace and --region to view a specific file:")
        for file in commit.files:
            file_identity = identity_from_path(file)
            if file_identity:
                print(
                    f"  njgit show {args.commit} --job {file_identity.name} "
                    f"--namespace {file_identity.namespace} --region {file_identity.region}"
                )
        return 0

    print(f"File: {path}")
    print()
    sys.stdout.write(browser.document_at(commit, path).decode("utf-8", errors="replace"))

    deployable = identity or identity_from_path(path)
    if deployable:
        print()
        print("To deploy this version:")
        print(
            f"  njgit deploy {args.commit} {deployable.name} "
            f"--namespace {deployable.namespace} --region {deployable.region}"
        )
    return 0


def cmd_deploy(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    if not is_local_backend(app_config.git):
        raise RevisionError(
            "deploy only supports the git backend\n"
            f"View the file on GitHub with: njgit show {args.commit} --job <job-name>"
        )

    browser = RevisionBrowser.from_config(app_config.git)
    deployment = browser.prepare_deployment(
        args.commit,
        region=args.region or "global",
        namespace=args.namespace or "default",
        job_name=args.job,
    )

    if args.dry_run:
        print("DRY RUN - would deploy:")
        print(f"Job:       {deployment.identity.name}")
        print(f"Namespace: {deployment.identity.namespace}")
        print(f"Region:    {deployment.identity.region}")
        print(f"Commit:    {deployment.commit.hash}")
        print()
        sys.stdout.write(deployment.text)
        print()
        print("This is a dry run - no changes were made to Nomad")
        return 0

    auth = resolve_nomad_auth(app_config.nomad)
    with NomadClient.from_auth(auth, timeout=app_config.nomad.timeout) as client:
        eval_id = deploy(deployment, client)

    print(f"Deployed {deployment.identity.display_name} from commit {deployment.commit.hash}")
    print(f"Evaluation ID: {eval_id}")
    if eval_id:
        print(f"Monitor with: nomad eval status {eval_id}")
    return 0


def cmd_config_show(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    print(json.dumps(app_config.redacted(), indent=2))
    return 0


def cmd_config_validate(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    print("Configuration is valid")
    print(f"  Backend:       {getattr(app_config.git.backend, 'value', app_config.git.backend)}")
    print(f"  Nomad address: {app_config.nomad.address or 'not set'}")
    print(f"  Jobs:          {len(app_config.jobs)}")
    print(f"  Sync interval: {humanize_seconds(app_config.sync_interval_seconds)}")
    print(f"  Status store:  {'enabled' if app_config.status.database_url else 'disabled'}")
    return 0


def cmd_status(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    if not app_config.status.database_url:
        raise ConfigurationError(
            "Status store not configured",
            suggestions=["Set status.database_url in the configuration or DATABASE_URL"],
        )

    init_database(app_config.status.database_url)
    try:
        with get_session() as session:
            statuses = SyncStatusRepository(session).get_all()
    finally:
        close_database()

    if not statuses:
        print("No sync status recorded yet")
        return 0

    for status in statuses:
        when = format_commit_date(status.last_success_at) if status.last_success_at else "never"
        line = f"{status.job_key}  {status.last_change_kind or '-'}  {status.last_commit_id or '-'}  {when}"
        if status.error_message:
            line += f"  error: {status.error_message}"
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for njgit.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.debug(
            f"Running command: {args.command}",
            extra={"event": "cli.command", "command": args.command, "log_level": env_config.log_level},
        )

        return handler(args, app_config, env_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except (NomadError, BackendError, RevisionError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug(
            f"Command failed: {e}",
            extra={"event": "cli.command.failed", "error_type": type(e).__name__},
            exc_info=True,
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
