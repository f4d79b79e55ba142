"""
Bounded retry through a fixed fallback list.

Attempt 0 runs the operation with the identifier produced by a primary
strategy (typically a network lookup). Attempt k >= 1 uses
fallbacks[(k - 1) % len(fallbacks)]. At most len(fallbacks) + 1 attempts are
made in total.

Failure handling:
- ServiceRestrictedError is never retried; it propagates after one attempt.
- Errors listed in `retry_on` (ResourceNotFoundError and friends) move on to
  the next identifier.
- Anything else propagates unchanged.

When every allowed attempt fails, ResolverExhaustedError carries the attempt
history and the last error.

A failing primary lookup counts as attempt 0 and is handled like a failed
operation: restriction propagates, `retry_on` errors move on to the first
fallback. Only a successful lookup is memoized per resolver instance, so a
failed one is tried again on the next run.
"""

import threading
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from core.errors import UpstreamError
from core.logging import LoggerMixin


T = TypeVar("T")

# Recorded in the attempt history when the primary lookup itself failed
UNRESOLVED_PRIMARY = "<primary>"


class ServiceRestrictedError(UpstreamError):
    """The provider refused service (abuse detection, rate limiting). Not retried."""


class ResourceNotFoundError(UpstreamError):
    """The identifier did not resolve to anything usable; try the next one."""


@dataclass(frozen=True)
class RetryAttempt:
    """One entry of a resolver run's history. Never persisted."""
    attempt_index: int
    resolved_identifier: str
    error: Optional[str] = None


class ResolverExhaustedError(UpstreamError):
    """Every allowed attempt failed."""

    def __init__(self, attempts: List[RetryAttempt], last_error: Optional[BaseException]):
        tried = ", ".join(a.resolved_identifier for a in attempts)
        super().__init__(
            f"All {len(attempts)} attempts failed (tried: {tried}): {last_error}",
            status_code=getattr(last_error, "status_code", None),
        )
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class ResolverResult(Generic[T]):
    value: T
    identifier: str
    attempts: List[RetryAttempt] = field(default_factory=list)


class IdentifierMemo:
    """Thread-safe, resolve-once holder for the primary identifier."""

    def __init__(self):
        self._value: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def value(self) -> Optional[str]:
        return self._value

    def get_or_resolve(self, resolve: Callable[[], str]) -> str:
        if self._value is None:
            with self._lock:
                if self._value is None:
                    self._value = resolve()
        return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = None


class FallbackResolver(LoggerMixin):
    """
    Run an operation against a primary identifier, then a fixed fallback list.

    Args:
        primary: Produces the attempt-0 identifier.
        fallbacks: Ordered identifiers for attempts 1..n.
        name: Label used in log events.
        retry_on: Exception types that advance to the next identifier.
        memoize: Resolve `primary` once per instance.
    """

    def __init__(
        self,
        primary: Callable[[], str],
        fallbacks: Sequence[str],
        name: str = "resolver",
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        memoize: bool = True,
    ):
        self._primary = primary
        self._fallbacks = tuple(fallbacks)
        self._name = name
        self._retry_on = retry_on
        self._memo = IdentifierMemo() if memoize else None

    @property
    def fallbacks(self) -> Tuple[str, ...]:
        return self._fallbacks

    @property
    def max_attempts(self) -> int:
        return len(self._fallbacks) + 1

    @property
    def memo(self) -> Optional[IdentifierMemo]:
        return self._memo

    def identifier_for(self, attempt_index: int) -> str:
        if attempt_index == 0:
            if self._memo is not None:
                return self._memo.get_or_resolve(self._primary)
            return self._primary()
        return self._fallbacks[(attempt_index - 1) % len(self._fallbacks)]

    def run(self, operation: Callable[[str], T]) -> ResolverResult[T]:
        attempts: List[RetryAttempt] = []
        last_error: Optional[BaseException] = None

        for attempt_index in range(self.max_attempts):
            identifier = UNRESOLVED_PRIMARY
            try:
                identifier = self.identifier_for(attempt_index)
                value = operation(identifier)
            except ServiceRestrictedError as e:
                attempts.append(RetryAttempt(attempt_index, identifier, str(e)))
                self.logger.warning(
                    "Service restricted, not retrying",
                    resolver=self._name,
                    identifier=identifier,
                    attempt=attempt_index,
                    error=str(e),
                )
                raise
            except self._retry_on as e:
                attempts.append(RetryAttempt(attempt_index, identifier, str(e)))
                last_error = e
                self.logger.info(
                    "Attempt failed, moving to next identifier",
                    resolver=self._name,
                    identifier=identifier,
                    attempt=attempt_index,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            attempts.append(RetryAttempt(attempt_index, identifier))
            if attempt_index > 0:
                self.logger.info(
                    "Resolved with fallback identifier",
                    resolver=self._name,
                    identifier=identifier,
                    attempt=attempt_index,
                )
            return ResolverResult(value=value, identifier=identifier, attempts=attempts)

        self.logger.warning(
            "All attempts exhausted",
            resolver=self._name,
            attempts=len(attempts),
            error=str(last_error),
        )
        raise ResolverExhaustedError(attempts, last_error)
