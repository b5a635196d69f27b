# tgbatch/core/errors.py
"""
Typed errors raised while building or dispatching a single batch item.

The batch executor is the only place that decides whether one of these
is absorbed into a failure record or re-raised to abort the batch.  When
it re-raises, it stamps ``item_index`` so the caller can locate the
offending record.
"""
from __future__ import annotations


class PipelineError(Exception):
    """Base class for all per-item pipeline errors."""

    def __init__(self, message: str, *, item_index: int | None = None):
        self.message = message
        self.item_index = item_index
        super().__init__(message)

    def __str__(self) -> str:
        if self.item_index is None:
            return self.message
        return f"{self.message} (item {self.item_index})"


class ValidationError(PipelineError):
    """Missing parameter, malformed inline keyboard, or unusable attachment."""


class UnsupportedOperationError(PipelineError):
    """Operation outside the supported set."""

    def __init__(self, operation: object, *, item_index: int | None = None):
        self.operation = operation
        super().__init__(
            f"The operation {operation!r} is not supported",
            item_index=item_index,
        )


class TransportError(PipelineError):
    """Error returned by the Telegram Bot API or raised by the network layer.

    Attributes:
        status:     HTTP status code (0 for connection-level errors).
        error_code: Telegram-specific error code from the response body.
        retryable:  Classification only; the pipeline never retries.
    """

    def __init__(
        self,
        status: int,
        error_code: int | None,
        message: str,
        *,
        retryable: bool = False,
        item_index: int | None = None,
    ):
        self.status = status
        self.error_code = error_code
        self.retryable = retryable
        self.description = message
        super().__init__(
            f"Telegram API error {status} (code={error_code}): {message}",
            item_index=item_index,
        )
