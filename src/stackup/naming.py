"""Stack naming utilities.

CloudFormation stack names must satisfy:
- Alphanumeric characters and hyphens only
- Must start with a letter
- Maximum 128 characters

A stack ARN (``arn:aws:cloudformation:...``) is also accepted wherever a
name is, since the API addresses deleted stacks only by id.
"""

import re

from .exceptions import ValidationError

MAX_STACK_NAME_LENGTH = 128

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")
ARN_PREFIX = "arn:"


def validate_stack_name(name: str) -> None:
    """
    Validate a CloudFormation stack name.

    Args:
        name: The user-provided stack name

    Raises:
        ValidationError: If the name is not acceptable to CloudFormation
    """
    if not name:
        raise ValidationError("stack name", name, "Name cannot be empty")

    if name.startswith(ARN_PREFIX):
        return

    if "_" in name:
        raise ValidationError(
            "stack name",
            name,
            "Contains underscore. Use hyphens instead (e.g., 'my-stack' not 'my_stack')",
        )
    if " " in name:
        raise ValidationError(
            "stack name",
            name,
            "Contains spaces. Use hyphens instead (e.g., 'my-stack' not 'my stack')",
        )

    if not NAME_PATTERN.match(name):
        raise ValidationError(
            "stack name",
            name,
            "Must start with a letter and contain only alphanumeric characters and hyphens.",
        )

    if len(name) > MAX_STACK_NAME_LENGTH:
        raise ValidationError(
            "stack name",
            name,
            f"Too long. Name exceeds {MAX_STACK_NAME_LENGTH} character limit.",
        )
