"""Input validation for CLI arguments."""
import json
import re
import sys
from typing import Optional


def validate_region(region: Optional[str]) -> None:
    """
    Validate an AWS region name such as us-east-1 or us-gov-west-1.

    An empty region is accepted here; the credential loader reports it.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not region:
        return

    pattern = r'^[a-z]{2}(-[a-z]+)+-\d+$'

    if not re.match(pattern, region, re.IGNORECASE):
        print(f"Error: Invalid AWS region '{region}'", file=sys.stderr)
        print("\nExamples of valid regions:", file=sys.stderr)
        print("  ✓ us-east-1", file=sys.stderr)
        print("  ✓ eu-west-2", file=sys.stderr)
        print("  ✓ us-gov-west-1", file=sys.stderr)
        sys.exit(2)


def validate_json_object(label: str, text: Optional[str]) -> None:
    """
    Validate that text is empty or a JSON object.

    Args:
        label: Name of the input, used in error messages
        text: Raw JSON text

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not text or not text.strip():
        return

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"Error: {label} is not valid JSON: {e}", file=sys.stderr)
        sys.exit(2)

    if not isinstance(data, dict):
        print(f"Error: {label} must be a JSON object, got {type(data).__name__}", file=sys.stderr)
        print('\nExample: {"API_URL": "https://example.com", "LOG_LEVEL": "info"}', file=sys.stderr)
        sys.exit(2)
