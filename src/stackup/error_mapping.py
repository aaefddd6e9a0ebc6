"""Translation of CloudFormation validation messages into stackup errors.

CloudFormation reports most lifecycle conditions as a ``ValidationError``
whose only distinguishing feature is the message text. All of that coupling
lives here: ``ERROR_PATTERNS`` is the one table to touch if AWS rewords a
message.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError

from .exceptions import (
    InvalidStateError,
    NoSuchStack,
    NoUpdateRequired,
    ServiceError,
    StackupError,
)

# Ordered: first match wins.
ERROR_PATTERNS: list[tuple[re.Pattern[str], type[StackupError]]] = [
    (re.compile(r"No updates are to be performed"), NoUpdateRequired),
    (re.compile(r"Stack .* does not exist"), NoSuchStack),
    (re.compile(r"can ?not be called from current stack status"), InvalidStateError),
    (re.compile(r"is in \S+ state and can ?not be updated"), InvalidStateError),
]

# Credential and authorization failures are surfaced unmodified.
CREDENTIAL_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "ExpiredToken",
        "ExpiredTokenException",
        "InvalidClientTokenId",
        "RequestExpired",
        "SignatureDoesNotMatch",
        "UnrecognizedClientException",
    }
)


def translate_client_error(error: ClientError, stack_name: str) -> Exception:
    """
    Map a botocore ClientError to the matching stackup exception.

    Args:
        error: Error raised by the CloudFormation client
        stack_name: Stack the call was made for

    Returns:
        A stackup exception, or ``error`` itself for credential failures
    """
    details = error.response.get("Error", {})
    code = details.get("Code")
    message = details.get("Message") or str(error)

    if code in CREDENTIAL_ERROR_CODES:
        return error

    for pattern, error_class in ERROR_PATTERNS:
        if pattern.search(message):
            return error_class(stack_name, message)  # type: ignore[call-arg]

    return ServiceError(message, code)


@contextmanager
def translate_errors(stack_name: str) -> Iterator[None]:
    """Re-raise ClientErrors raised inside the block as stackup errors."""
    try:
        yield
    except ClientError as e:
        translated = translate_client_error(e, stack_name)
        if translated is e:
            raise
        raise translated from e


class ErrorMappingProxy:
    """
    Wrap a boto3 CloudFormation client so every call is error-translated.

    Non-callable attributes (``meta``, ``exceptions``) pass straight through.

    Example:
        cfn = ErrorMappingProxy(boto3.client("cloudformation"), "my-stack")
        cfn.describe_stacks(StackName="my-stack")  # raises NoSuchStack
    """

    def __init__(self, client: Any, stack_name: str) -> None:
        self._client = client
        self._stack_name = stack_name

    @property
    def client(self) -> Any:
        """The wrapped boto3 client."""
        return self._client

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if not callable(attr):
            return attr
        return self._wrap(attr)

    def _wrap(self, method: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(method)
        def call(*args: Any, **kwargs: Any) -> Any:
            with translate_errors(self._stack_name):
                return method(*args, **kwargs)

        return call
