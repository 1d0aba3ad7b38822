"""Write CI secrets into a .env file ahead of a front-end build."""
import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

from ..domains.resolver import parse_ignore_list

logger = logging.getLogger(__name__)

DEFAULT_ENV_IGNORE = "AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY GITHUB_TOKEN github_token"


def write_env_file(
    all_values: Mapping[str, Optional[str]],
    ignore: Union[str, Iterable[str], None] = DEFAULT_ENV_IGNORE,
    path: Union[str, Path] = ".env",
) -> List[str]:
    """
    Write NAME=value lines for every non-ignored secret with a value.

    The file is truncated first. With no secrets at all it is left untouched.
    Values are never logged.

    Returns:
        Names written, in the mapping's iteration order
    """
    if not all_values:
        logger.info("No secret names found. Skipping .env file creation.")
        return []

    ignore_set = parse_ignore_list(ignore)
    env_path = Path(path)
    logger.info(f"Secrets to potentially write: {' '.join(all_values)}")
    logger.info(f"Secrets to ignore: {' '.join(sorted(ignore_set))}")

    written = []
    with open(env_path, 'w') as f:
        for name, value in all_values.items():
            if name in ignore_set:
                logger.info(f"Skipping: {name} (found in ignore list)")
                continue
            if not value:
                logger.info(f"Skipping: {name} (value is empty)")
                continue
            logger.info(f"Writing {name} to {env_path}")
            f.write(f"{name}={value}\n")
            written.append(name)

    logger.info(f"{env_path} generation complete ({len(written)} entries).")
    return written
