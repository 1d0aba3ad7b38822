"""CLI entrypoint for secretsync."""
import os
import sys
import argparse
import logging
from pathlib import Path

from secretsync import __version__ as VERSION
from secretsync.sync.domains.errors import ConfigError
from .validators import validate_json_object, validate_region

# Configure logging to stderr; the CI log is the audit trail
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _configure_verbosity(args):
    if getattr(args, "quiet", False):
        logging.getLogger().setLevel(logging.WARNING)
    elif getattr(args, "verbose", False):
        logging.getLogger().setLevel(logging.DEBUG)


def _load_settings(args):
    """Load the config file and resolve backend, region, project and context."""
    from secretsync.sync.domains.config_loader import load_config, resolve_setting
    from secretsync.sync.domains.models import EventKind
    from secretsync.sync.domains.prefix import repo_basename

    config = load_config(getattr(args, "config", None))
    backend = getattr(args, "backend", None) or os.getenv("SECRETSYNC_BACKEND") or config["backend"]

    region = resolve_setting(args.region, "AWS_REGION", config, "aws", "region")
    if backend == "aws" or args.command == "site":
        validate_region(region)

    repository = args.repository or os.getenv("GITHUB_REPOSITORY") or ""
    event_name = args.event_name or os.getenv("GITHUB_EVENT_NAME")

    return {
        "config": config,
        "backend": backend,
        "region": region,
        "project_id": resolve_setting(getattr(args, "project_id", None), "GCP_PROJECT", config, "gcp", "project_id"),
        "repo_name": repo_basename(repository) if repository else "",
        "event_kind": EventKind.from_event_name(event_name),
        "head_ref": args.head_ref or os.getenv("GITHUB_HEAD_REF"),
        "base_ref": args.ref or os.getenv("GITHUB_REF"),
    }


def _read_secrets_json(args):
    from secretsync.sync.workflows.secret_sync import parse_secrets_json

    text = args.secrets_json if args.secrets_json is not None else os.getenv("GITHUB_SECRETS_JSON", "")
    validate_json_object("Secrets JSON", text)
    return parse_secrets_json(text)


def _read_variables_json(args):
    from secretsync.sync.workflows.secret_sync import parse_variables_json

    text = args.variables_json if args.variables_json is not None else os.getenv("CALLER_VARIABLES_JSON", "{}")
    validate_json_object("Variables JSON", text)
    return parse_variables_json(text)


def _run_sync(args, include_secrets: bool, include_variables: bool):
    from secretsync.sync.domains.aws_client import CredentialContext
    from secretsync.sync.domains.config_loader import resolve_setting
    from secretsync.sync.domains.resolver import DEFAULT_SECRETS_TO_IGNORE
    from secretsync.sync.domains.store import build_store
    from secretsync.sync.workflows.secret_sync import SyncContext, run_sync

    settings = _load_settings(args)
    config = settings["config"]

    secrets = _read_secrets_json(args) if include_secrets else None
    variables = _read_variables_json(args) if include_variables else None

    # An explicit empty flag means "calculate the prefix", not "use the config"
    if args.secret_prefix is not None:
        explicit_prefix = args.secret_prefix
    else:
        explicit_prefix = resolve_setting(None, None, config, "sync", "secret_prefix")
    if not explicit_prefix and not settings["repo_name"]:
        raise ConfigError(
            "Repository name is required to calculate the prefix.\n"
            "Pass --repository, set GITHUB_REPOSITORY or pass --secret-prefix."
        )

    context = None
    if settings["backend"] == "aws":
        context = CredentialContext.load(settings["region"])
    store = build_store(settings["backend"], context=context, project_id=settings["project_id"])

    ignore = None
    if include_secrets and args.secrets_to_ignore is not None:
        ignore = args.secrets_to_ignore
    elif include_secrets:
        ignore = resolve_setting(None, None, config, "sync", "secrets_to_ignore", DEFAULT_SECRETS_TO_IGNORE)

    sync_context = SyncContext(
        repo_name=settings["repo_name"],
        event_kind=settings["event_kind"],
        head_ref=settings["head_ref"],
        base_ref=settings["base_ref"],
        explicit_prefix=explicit_prefix,
    )
    reports = run_sync(store, sync_context, secrets=secrets, variables=variables, ignore=ignore)

    failed = 0
    for stage, report in reports.items():
        print(f"{stage}: synced={report.synced} failed={report.failed} skipped={report.skipped}")
        failed += report.failed

    if failed and args.fail_on_error:
        print(f"Error: {failed} item(s) failed to sync", file=sys.stderr)
        sys.exit(1)


def cmd_version(args):
    """Show version information."""
    print(f"secretsync {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from secretsync.sync.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from secretsync.sync.domains.config_loader import default_config_path
    from secretsync.sync.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        if default_config.exists():
            print("Source: default")
        else:
            print("Source: default (file not found, built-in defaults apply)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from secretsync.sync.domains.config_loader import default_config_path
    from secretsync.sync.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_sync(args):
    """Sync secrets, then variables."""
    _run_sync(args, include_secrets=True, include_variables=True)


def cmd_secrets_sync(args):
    """Sync branch secrets only."""
    _run_sync(args, include_secrets=True, include_variables=False)


def cmd_vars_sync(args):
    """Sync caller variables only."""
    _run_sync(args, include_secrets=False, include_variables=True)


def cmd_env_write(args):
    """Write secrets into a .env file."""
    from secretsync.sync.workflows.env_file import DEFAULT_ENV_IGNORE, write_env_file

    secrets = _read_secrets_json(args)
    ignore = args.secrets_to_ignore if args.secrets_to_ignore is not None else DEFAULT_ENV_IGNORE
    written = write_env_file(secrets, ignore, args.output)
    print(f"Wrote {len(written)} entries to {args.output}")


def cmd_site_deploy(args):
    """Deploy a built static site to S3 and invalidate CloudFront."""
    from secretsync.sync.domains.aws_client import CredentialContext
    from secretsync.sync.domains.config_loader import resolve_setting
    from secretsync.sync.domains.prefix import derive_branch
    from secretsync.sync.workflows.site_deploy import DEFAULT_BUILD_OUTPUT_DIR, deploy_site

    settings = _load_settings(args)
    config = settings["config"]

    branch = args.branch or derive_branch(settings["event_kind"], settings["head_ref"], settings["base_ref"])
    if not branch:
        raise ConfigError("Branch name is required. Pass --branch or set GITHUB_HEAD_REF/GITHUB_REF.")
    if not settings["repo_name"]:
        raise ConfigError("Repository name is required. Pass --repository or set GITHUB_REPOSITORY.")

    distribution_id = resolve_setting(args.distribution_id, "DISTRIBUTION_ID", config, "deploy", "distribution_id")
    build_output_dir = resolve_setting(args.build_output_dir, None, config, "deploy", "build_output_dir", DEFAULT_BUILD_OUTPUT_DIR)

    context = CredentialContext.load(settings["region"])
    report = deploy_site(context, branch, settings["repo_name"], distribution_id, build_output_dir)
    print(f"Deployed to s3://{report.bucket} (invalidation {report.invalidation_id})")


def _add_common_arguments(parser):
    parser.add_argument("--config", help="Path to config file (overrides preference/default location)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def _add_context_arguments(parser):
    parser.add_argument("--region", help="AWS region (default: AWS_REGION or config aws.region)")
    parser.add_argument("--repository", help="Repository slug owner/repo (default: GITHUB_REPOSITORY)")
    parser.add_argument("--event-name", help="CI event name (default: GITHUB_EVENT_NAME)")
    parser.add_argument("--head-ref", help="Pull request source branch (default: GITHUB_HEAD_REF)")
    parser.add_argument("--ref", help="Git ref being acted on, e.g. refs/heads/main (default: GITHUB_REF)")


def _add_sync_arguments(parser, secrets: bool, variables: bool):
    _add_common_arguments(parser)
    _add_context_arguments(parser)
    parser.add_argument(
        "--backend",
        choices=["aws", "gcp"],
        help="Secret store backend (default: SECRETSYNC_BACKEND or config backend, else aws)"
    )
    parser.add_argument("--project-id", help="GCP project ID for the gcp backend (default: GCP_PROJECT)")
    parser.add_argument(
        "--secret-prefix",
        help="Explicit path prefix (e.g. env/repo/branch/). Calculated from repository and branch if empty."
    )
    if secrets:
        parser.add_argument("--secrets-json", help="JSON object of all CI secrets (default: GITHUB_SECRETS_JSON)")
        parser.add_argument("--secrets-to-ignore", help="Space-separated secret names never to sync")
    if variables:
        parser.add_argument("--variables-json", help="JSON object of caller variables (default: CALLER_VARIABLES_JSON)")
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with code 1 if any item failed to sync"
    )


def main():
    """Main CLI entrypoint.

    Exit codes:
        0 - Success (individual sync failures are reported, not fatal)
        1 - Runtime errors (missing branch or region, deploy failure, --fail-on-error)
        2 - Usage errors (invalid arguments, invalid JSON, invalid region format)
    """
    parser = argparse.ArgumentParser(
        prog="secretsync",
        description="secretsync - mirror CI secrets and variables into a cloud secret store",
        epilog="""
Exit codes:
  0 - Success (individual sync failures are logged, not fatal)
  1 - Runtime error (missing branch, missing region, deploy failure, etc.)
  2 - Usage error (invalid arguments, invalid JSON input, etc.)

Environment variables:
  GITHUB_SECRETS_JSON    - JSON object of all CI secrets
  CALLER_VARIABLES_JSON  - JSON object of caller variables
  GITHUB_REPOSITORY, GITHUB_EVENT_NAME, GITHUB_HEAD_REF, GITHUB_REF - CI context
  AWS_REGION, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY - AWS credentials
  GCP_PROJECT            - GCP project ID for the gcp backend

Configuration:
  Default location: ~/.config/secretsync/config.yml (optional)
  Custom path: Set with 'secretsync config set-path <path>'
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of secretsync"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage secretsync configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="Store the absolute path to your config file in ~/.config/secretsync/preferences.json"
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    _config_show_parser = config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source"
    )

    _config_clear_parser = config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference; the default location will be used"
    )

    # sync command (secrets then variables)
    sync_parser = subparsers.add_parser(
        "sync",
        help="Sync branch secrets and caller variables",
        description="""
Sync CI secrets and variables into the secret store.

Secrets are selected for the current branch: a secret named <env>_<NAME>
is synced when <env> matches the branch (case-insensitive), it is not in
the ignore list, and its value is non-empty. Each item is created, or
updated if creation fails.

Secrets go to secret/<repo>/<branch>/<name>, variables to
env/<repo>/<branch>/<name>, unless --secret-prefix is given.
        """
    )
    _add_sync_arguments(sync_parser, secrets=True, variables=True)

    # secrets command
    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret sync operations",
        description="Sync branch secrets into the secret store"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")
    secrets_sync_parser = secrets_subparsers.add_parser(
        "sync",
        help="Sync branch secrets",
        description="Select secrets for the current branch and upsert them under secret/<repo>/<branch>/"
    )
    _add_sync_arguments(secrets_sync_parser, secrets=True, variables=False)

    # vars command
    vars_parser = subparsers.add_parser(
        "vars",
        help="Variable sync operations",
        description="Sync caller variables into the secret store"
    )
    vars_subparsers = vars_parser.add_subparsers(dest="vars_command")
    vars_sync_parser = vars_subparsers.add_parser(
        "sync",
        help="Sync caller variables",
        description="Upsert every caller variable under env/<repo>/<branch>/ without filtering"
    )
    _add_sync_arguments(vars_sync_parser, secrets=False, variables=True)

    # env command
    env_parser = subparsers.add_parser(
        "env",
        help=".env file operations",
        description="Generate .env files from CI secrets"
    )
    env_subparsers = env_parser.add_subparsers(dest="env_command")
    env_write_parser = env_subparsers.add_parser(
        "write",
        help="Write secrets to a .env file",
        description="Write NAME=value for every non-ignored secret with a value"
    )
    _add_common_arguments(env_write_parser)
    env_write_parser.add_argument("--secrets-json", help="JSON object of all CI secrets (default: GITHUB_SECRETS_JSON)")
    env_write_parser.add_argument("--secrets-to-ignore", help="Space-separated secret names to leave out")
    env_write_parser.add_argument("-o", "--output", default=".env", help="Output file (default: .env)")

    # site command
    site_parser = subparsers.add_parser(
        "site",
        help="Static site operations",
        description="Deploy built static sites"
    )
    site_subparsers = site_parser.add_subparsers(dest="site_command")
    site_deploy_parser = site_subparsers.add_parser(
        "deploy",
        help="Deploy build output to S3 and invalidate CloudFront",
        description="""
Mirror the build output directory into s3://<branch>-<repo>-<region>-static-s3
(deleting stale objects), then invalidate /* on the CloudFront distribution.
        """
    )
    _add_common_arguments(site_deploy_parser)
    _add_context_arguments(site_deploy_parser)
    site_deploy_parser.add_argument("--branch", help="Branch name (default: derived from CI context)")
    site_deploy_parser.add_argument("--distribution-id", help="CloudFront distribution ID (default: DISTRIBUTION_ID)")
    site_deploy_parser.add_argument("--build-output-dir", help="Built static files directory (default: ./build/)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(2)

    _configure_verbosity(args)

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            else:
                config_parser.print_help()
                sys.exit(2)
        elif args.command == "sync":
            cmd_sync(args)
        elif args.command == "secrets":
            if args.secrets_command == "sync":
                cmd_secrets_sync(args)
            else:
                secrets_parser.print_help()
                sys.exit(2)
        elif args.command == "vars":
            if args.vars_command == "sync":
                cmd_vars_sync(args)
            else:
                vars_parser.print_help()
                sys.exit(2)
        elif args.command == "env":
            if args.env_command == "write":
                cmd_env_write(args)
            else:
                env_parser.print_help()
                sys.exit(2)
        elif args.command == "site":
            if args.site_command == "deploy":
                cmd_site_deploy(args)
            else:
                site_parser.print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
