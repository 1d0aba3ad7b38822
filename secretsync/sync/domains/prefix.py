"""Branch and storage path prefix derivation."""
import logging
from typing import Optional

from .models import EventKind

logger = logging.getLogger(__name__)

REF_PREFIXES = ("refs/heads/", "refs/tags/")

SECRET_ROOT = "secret"
VARIABLE_ROOT = "env"


def strip_ref(ref: str) -> str:
    """Remove at most one leading refs/heads/ or refs/tags/ from a git ref."""
    for ref_prefix in REF_PREFIXES:
        if ref.startswith(ref_prefix):
            return ref[len(ref_prefix):]
    return ref


def derive_branch(event_kind: EventKind, head_ref: Optional[str], base_ref: Optional[str]) -> str:
    """
    Get the branch or tag name driving the run.

    Pull requests use the PR's source branch as-is; every other event uses
    the ref being acted on with its refs/heads/ or refs/tags/ prefix removed.
    """
    if event_kind is EventKind.PULL_REQUEST:
        return head_ref or ""
    return strip_ref(base_ref or "")


def repo_basename(repository: str) -> str:
    """Turn an 'owner/repo' slug into 'repo'."""
    return repository.rstrip("/").rsplit("/", 1)[-1]


def compute_prefix(
    explicit: Optional[str],
    repo_name: str,
    event_kind: EventKind,
    head_ref: Optional[str],
    base_ref: Optional[str],
    root: str = SECRET_ROOT,
) -> str:
    """
    Compute the path prefix under which entries are stored.

    Args:
        explicit: Caller-supplied prefix; returned unchanged when non-empty
        repo_name: Repository name (not the owner/repo slug)
        event_kind: Kind of CI event
        head_ref: PR source branch
        base_ref: Ref being acted on (e.g. refs/heads/main)
        root: Leading path segment ("secret" for secrets, "env" for variables)

    Returns:
        Prefix ending in '/' unless an explicit prefix was given
    """
    if explicit:
        logger.info(f"Using provided prefix: {explicit}")
        return explicit

    branch = derive_branch(event_kind, head_ref, base_ref)
    prefix = f"{root}/{repo_name}/{branch}/"
    logger.info(f"Calculated prefix: {prefix}")
    return prefix
