"""
Request lifecycle tracking for user-triggered model calls.

Each tool allows one request in flight. A tracker moves through:

    IDLE -> PENDING -> SUCCESS(result) | FAILED(error_kind)

and back to PENDING on the next user action.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .config import ConfigStoreError
from .gemini_client import GeminiConfigurationError
from .llm_client import LLMConfigurationError, UpstreamContractError
from .templates import TemplateError

logger = logging.getLogger(__name__)


class RequestStatus(Enum):
    """Observable states of a request."""
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class ErrorKind(Enum):
    """Failure categories shown to the user."""
    INVALID_INPUT = "invalid_input"
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    CONTRACT_VIOLATION = "contract_violation"
    NO_RESULT = "no_result"


class InvalidTransitionError(Exception):
    """Raised when a transition is not allowed from the current state."""
    pass


@dataclass(frozen=True)
class RequestState:
    """Immutable snapshot of a request."""
    status: RequestStatus = RequestStatus.IDLE
    result: Any = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def is_settled(self) -> bool:
        return self.status in (RequestStatus.SUCCESS, RequestStatus.FAILED)


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception raised by a generator to an ErrorKind."""
    if isinstance(error, UpstreamContractError):
        return ErrorKind.CONTRACT_VIOLATION
    if isinstance(error, (ValueError, TypeError, TemplateError)):
        return ErrorKind.INVALID_INPUT
    if isinstance(error, (ConfigStoreError, LLMConfigurationError, GeminiConfigurationError)):
        return ErrorKind.CONFIGURATION
    return ErrorKind.UPSTREAM


class RequestTracker:
    """
    State machine for a single tool's request.

    Transitions happen only through start (user action) and
    succeed/fail (response arrival).
    """

    def __init__(self, name: str = "request"):
        self.name = name
        self._state = RequestState()

    @property
    def state(self) -> RequestState:
        return self._state

    def start(self) -> RequestState:
        """Enter PENDING. Rejected while a request is already in flight."""
        if self._state.is_pending:
            raise InvalidTransitionError(f"{self.name}: a request is already in flight")
        self._state = RequestState(status=RequestStatus.PENDING)
        return self._state

    def succeed(self, result: Any) -> RequestState:
        """Settle with a result."""
        self._require_pending("succeed")
        self._state = RequestState(status=RequestStatus.SUCCESS, result=result)
        return self._state

    def fail(self, error_kind: ErrorKind, message: str = "") -> RequestState:
        """Settle with an error."""
        self._require_pending("fail")
        self._state = RequestState(
            status=RequestStatus.FAILED,
            error_kind=error_kind,
            error_message=message or error_kind.value,
        )
        return self._state

    def reset(self) -> RequestState:
        """Return to IDLE. Rejected while a request is in flight."""
        if self._state.is_pending:
            raise InvalidTransitionError(f"{self.name}: cannot reset while pending")
        self._state = RequestState()
        return self._state

    def run(self, func: Callable[..., Any], *args, **kwargs) -> RequestState:
        """
        Run func as one request and settle the state from its outcome.

        Exceptions from func are recorded as FAILED, not re-raised. A None
        result settles as FAILED(NO_RESULT).

        Returns:
            The settled state.
        """
        self.start()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            kind = classify_error(e)
            logger.warning(f"{self.name} failed ({kind.value}): {e}")
            return self.fail(kind, str(e))
        if result is None:
            return self.fail(ErrorKind.NO_RESULT, f"{self.name} returned no result")
        return self.succeed(result)

    def _require_pending(self, action: str) -> None:
        if not self._state.is_pending:
            raise InvalidTransitionError(
                f"{self.name}: cannot {action} from {self._state.status.value}"
            )
