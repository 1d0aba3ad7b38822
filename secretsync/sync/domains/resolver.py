"""Select which CI secrets belong to the current branch."""
import logging
from typing import Iterable, List, Mapping, Optional, Set, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Credentials used to authenticate the sync itself; never synced.
RESERVED_CREDENTIAL_NAMES = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")

DEFAULT_SECRETS_TO_IGNORE = "AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY github_token GITHUB_TOKEN"


def parse_ignore_list(ignore: Union[str, Iterable[str], None]) -> Set[str]:
    """
    Normalize an ignore list into a set of exact names.

    Args:
        ignore: Whitespace-delimited string, iterable of names, or None

    Returns:
        Set of names (case preserved)
    """
    if not ignore:
        return set()
    if isinstance(ignore, str):
        return set(ignore.split())
    return {name for name in ignore if name}


def env_prefix(name: str) -> Optional[str]:
    """Return the part of a secret name before its first underscore, or None."""
    if "_" not in name:
        return None
    return name.split("_", 1)[0]


def strip_env_prefix(name: str) -> str:
    """Return the part of a secret name after its first underscore."""
    if "_" not in name:
        return name
    return name.split("_", 1)[1]


def resolve_secret_names(
    all_values: Mapping[str, Optional[str]],
    ignore: Union[str, Iterable[str], None],
    branch: Optional[str],
) -> List[str]:
    """
    Compute the ordered list of secret names to sync for a branch.

    Args:
        all_values: Every secret available to the run, name -> value
        ignore: Names never to sync (exact, case-sensitive match)
        branch: Active branch; compared case-insensitively to each name's env prefix

    Returns:
        Names that survived filtering, in the mapping's iteration order

    Raises:
        ConfigurationError: If branch is empty
    """
    candidates = [name for name in all_values if name not in RESERVED_CREDENTIAL_NAMES]

    if not branch:
        raise ConfigurationError(
            "Branch name is required to select secrets but none was provided.\n"
            "Pass --head-ref/--ref or set GITHUB_HEAD_REF/GITHUB_REF."
        )

    ignore_set = parse_ignore_list(ignore)
    branch_key = branch.lower()

    logger.info(f"Potential secrets to sync (before filtering): {' '.join(candidates)}")
    logger.info(f"Secrets to ignore: {' '.join(sorted(ignore_set))}")
    logger.info(f"Selecting secrets for branch: {branch}")

    resolved = []
    for name in candidates:
        if name in ignore_set:
            logger.info(f"Filtering out: {name} (in ignore list)")
            continue

        prefix = env_prefix(name)
        if prefix is None:
            logger.info(f"Filtering out: {name} (no environment prefix)")
            continue

        if prefix.lower() != branch_key:
            logger.info(f"Filtering out: {name} (prefix '{prefix}' does not match branch '{branch}')")
            continue

        if not all_values.get(name):
            logger.info(f"Filtering out: {name} (value is empty)")
            continue

        resolved.append(name)

    if resolved:
        logger.info(f"Secrets to attempt syncing: {' '.join(resolved)}")
    else:
        logger.info("No secrets remaining after filtering.")

    return resolved
