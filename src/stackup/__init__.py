"""
stackup: manage AWS CloudFormation stacks.

Provides a synchronous lifecycle orchestrator for a single named stack:
- create-or-update with dead-stack recovery
- delete and cancel-update with no-op normalization
- exactly-once relay of stack events while operations run
- structural diff of a planned template/parameters/tags against the live stack

Example:
    from stackup import ChangeRequest, Stack, StackupConfig

    stack = Stack("my-stack", config=StackupConfig(region="us-east-1"))
    result = stack.create_or_update(
        ChangeRequest(template=template, parameters={"Env": "prod"})
    )
    print(result)  # created / updated / unchanged
"""

from importlib.metadata import PackageNotFoundError, version

from .config import StackupConfig
from .differ import DiffStyle, DiffView
from .exceptions import (
    InvalidStateError,
    NoSuchStack,
    NoUpdateRequired,
    ServiceError,
    StackupError,
    StackUpdateError,
    StackWaitTimeout,
    UsageError,
    ValidationError,
)
from .models import (
    ALMOST_DEAD_STATUSES,
    ChangeRequest,
    OnFailure,
    StackEvent,
    StackResult,
    is_terminal,
)
from .orchestrator import LifecycleOrchestrator
from .parameters import USE_PREVIOUS_VALUE
from .stack import Stack
from .watcher import EventWatcher

try:
    __version__ = version("stackup")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "Stack",
    "StackupConfig",
    "LifecycleOrchestrator",
    "EventWatcher",
    # Models
    "ChangeRequest",
    "StackEvent",
    "StackResult",
    "OnFailure",
    "DiffView",
    "DiffStyle",
    "USE_PREVIOUS_VALUE",
    "ALMOST_DEAD_STATUSES",
    "is_terminal",
    # Exceptions
    "StackupError",
    "NoSuchStack",
    "NoUpdateRequired",
    "InvalidStateError",
    "StackUpdateError",
    "StackWaitTimeout",
    "ServiceError",
    "UsageError",
    "ValidationError",
]
