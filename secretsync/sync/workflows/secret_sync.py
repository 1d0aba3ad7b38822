"""Workflow for syncing CI secrets and variables into a secret store."""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ..domains.errors import ConfigError, SecretStoreError
from ..domains.models import EventKind, SyncReport, UpsertOutcome, UpsertResult
from ..domains.prefix import SECRET_ROOT, VARIABLE_ROOT, compute_prefix, derive_branch
from ..domains.resolver import resolve_secret_names, strip_env_prefix
from ..domains.store import SecretStore

logger = logging.getLogger(__name__)


def _render_value(value: Any) -> str:
    """Render a JSON value the way `jq -r` prints it."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return json.dumps(value)


def parse_variables_json(text: Optional[str]) -> Dict[str, str]:
    """
    Parse the caller's variables JSON into a name -> value mapping.

    Raises:
        ConfigError: If the text is not valid JSON or not a JSON object
    """
    if not text or not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Variables JSON is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ConfigError("Variables JSON must be a JSON object")
    return {str(key): _render_value(value) for key, value in data.items()}


def parse_secrets_json(text: Optional[str]) -> Dict[str, str]:
    """
    Parse the JSON dump of all CI secrets (name -> value).

    Null values become empty strings so they are filtered as empty.
    """
    if not text or not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Secrets JSON is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ConfigError("Secrets JSON must be a JSON object")
    return {str(key): "" if value is None else _render_value(value) for key, value in data.items()}


def try_create(store: SecretStore, path: str, value: str) -> Optional[UpsertOutcome]:
    try:
        store.create(path, value)
    except SecretStoreError as e:
        logger.info(f"Secret {path} might already exist. Attempting update...")
        logger.debug(f"Create failed for {path}: {e}")
        return None
    logger.info(f"Successfully created secret: {path}")
    return UpsertOutcome(UpsertResult.CREATED, path)


def try_update(store: SecretStore, path: str, value: str) -> UpsertOutcome:
    try:
        store.update(path, value)
    except SecretStoreError as e:
        logger.error(f"ERROR: Failed to create or update secret: {path}. Check permissions and logs.")
        return UpsertOutcome(UpsertResult.FAILED, path, error=str(e))
    logger.info(f"Successfully updated secret: {path}")
    return UpsertOutcome(UpsertResult.UPDATED, path)


def upsert(store: SecretStore, name: str, value: str, prefix: str, strip_env_prefix_flag: bool) -> UpsertOutcome:
    """
    Create the secret at prefix + name, falling back to an update.

    Any create failure is treated as "already exists"; the update is the
    only retry. When strip_env_prefix_flag is set the stripped name is
    computed for the log, but the stored path keeps the full name.
    """
    if strip_env_prefix_flag:
        stored_name = strip_env_prefix(name)
        logger.debug(f"Secret {name} has short name {stored_name}")
    path = f"{prefix}{name}"
    logger.info(f"Attempting sync for: {name} to {path}")
    return try_create(store, path, value) or try_update(store, path, value)


def sync_secrets(
    store: SecretStore,
    all_values: Mapping[str, Optional[str]],
    names: Iterable[str],
    prefix: str,
    strip_env_prefix_flag: bool = True,
) -> SyncReport:
    """Upsert every resolved secret name; failures never stop the batch."""
    report = SyncReport()
    names = list(names)
    if not names:
        logger.info("No secrets to sync after filtering.")
        return report

    logger.info(f"Will attempt to sync secrets named: {' '.join(names)}")
    for name in names:
        value = all_values.get(name)
        if not value:
            logger.warning(f"Skipping sync for: {name} (value is unexpectedly empty)")
            report.skipped += 1
            continue
        report.record(upsert(store, name, value, prefix, strip_env_prefix_flag))

    logger.info(f"Sync attempt finished. Synced: {report.synced}, Failed: {report.failed}, Skipped: {report.skipped}.")
    return report


def sync_variables(store: SecretStore, variables: Mapping[str, str], prefix: str) -> SyncReport:
    """Upsert every caller variable at prefix + name. Empty values are synced."""
    report = SyncReport()
    if not variables:
        logger.info("No variables received or JSON is empty.")
        return report

    logger.info("Starting VARIABLE sync process...")
    for name, value in variables.items():
        if not name:
            logger.info("Skipping sync for an entry with an empty name.")
            report.skipped += 1
            continue
        report.record(upsert(store, name, value, prefix, False))

    logger.info(f"VARIABLE sync finished. Synced: {report.synced}, Failed: {report.failed}, Skipped: {report.skipped}.")
    return report


@dataclass
class SyncContext:
    """CI context for one run."""
    repo_name: str
    event_kind: EventKind
    head_ref: Optional[str] = None
    base_ref: Optional[str] = None
    explicit_prefix: Optional[str] = None

    @property
    def branch(self) -> str:
        return derive_branch(self.event_kind, self.head_ref, self.base_ref)

    def prefix(self, root: str) -> str:
        return compute_prefix(
            self.explicit_prefix, self.repo_name, self.event_kind, self.head_ref, self.base_ref, root=root
        )


def run_sync(
    store: SecretStore,
    context: SyncContext,
    secrets: Optional[Mapping[str, Optional[str]]] = None,
    variables: Optional[Mapping[str, str]] = None,
    ignore: Union[str, Iterable[str], None] = None,
) -> Dict[str, SyncReport]:
    """
    Run the pipeline: resolve names, compute prefixes, sync secrets, then variables.

    Passing None for secrets or variables skips that stage. Returns the
    reports keyed "secrets" and "variables" for the stages that ran.

    Raises:
        ConfigurationError: If secrets are requested and the branch is empty.
            Raised before any store call is made.
    """
    reports: Dict[str, SyncReport] = {}

    if secrets is not None:
        names = resolve_secret_names(secrets, ignore, context.branch)
        secret_prefix = context.prefix(SECRET_ROOT)
        reports["secrets"] = sync_secrets(store, secrets, names, secret_prefix)

    if variables is not None:
        variable_prefix = context.prefix(VARIABLE_ROOT)
        reports["variables"] = sync_variables(store, variables, variable_prefix)

    return reports
