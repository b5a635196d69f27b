# tgbatch/core/executor.py
"""
Sequential batch executor.

Each item runs PENDING → BUILDING → DISPATCHING → SUCCEEDED | FAILED
before the next one starts; there is never more than one request in
flight for a batch.

On failure:
- continue_on_fail=True  → a failure OutcomeRecord takes the item's slot
                           and the loop moves on
- continue_on_fail=False → the error is stamped with the item index and
                           re-raised; later items are never built
"""
from __future__ import annotations

from typing import Any, Sequence

from tgbatch.core.domain import BatchConfig, InputItem, ItemState, OutcomeRecord
from tgbatch.core.errors import PipelineError
from tgbatch.core.payload_builder import PayloadBuilder
from tgbatch.core.ports import Dispatcher, ParameterResolver
from tgbatch.infra.logging_config import LogContext, get_logger
from tgbatch.infra.metrics import BatchMetrics

logger = get_logger(__name__)


class BatchExecutor:
    def __init__(self, dispatcher: Dispatcher, builder: PayloadBuilder | None = None):
        self._dispatcher = dispatcher
        self._builder = builder or PayloadBuilder()

    async def execute(
        self,
        items: Sequence[InputItem],
        resolver: ParameterResolver,
        config: BatchConfig,
    ) -> list[OutcomeRecord]:
        """
        Run every item and return the flattened, ordered result batch.

        Raises:
            PipelineError: first item failure when continue_on_fail is off
                (``item_index`` is set on the error)
        """
        results: list[OutcomeRecord] = []
        failed = 0

        logger.info(
            "Batch started: items=%d, binary=%s, continue_on_fail=%s",
            len(items), config.binary_data, config.continue_on_fail,
            extra={"operation": config.operation.value},
        )

        for index, item in enumerate(items):
            log = LogContext(logger, operation=config.operation.value, item_index=index)
            state = ItemState.PENDING
            try:
                state = _advance(log, state, ItemState.BUILDING)
                payload = self._builder.build(item, index, config, resolver)

                state = _advance(log, state, ItemState.DISPATCHING)
                if payload.is_multipart:
                    response = await self._dispatcher.request(
                        payload.method, payload.endpoint, {}, payload.qs,
                        form_data=payload.form_data(),
                    )
                else:
                    response = await self._dispatcher.request(
                        payload.method, payload.endpoint, payload.body, payload.qs,
                    )

                results.extend(_flatten(response, index))
                _advance(log, state, ItemState.SUCCEEDED)
                BatchMetrics.item_succeeded(config.operation.value)

            except Exception as exc:
                _advance(log, state, ItemState.FAILED)
                BatchMetrics.item_failed(config.operation.value)

                if config.continue_on_fail:
                    failed += 1
                    message = exc.message if isinstance(exc, PipelineError) else str(exc)
                    log.warning(f"Item failed, continuing: {type(exc).__name__}: {message}")
                    results.append(OutcomeRecord.failure(message, index))
                    continue

                if isinstance(exc, PipelineError):
                    exc.item_index = index
                BatchMetrics.batch_aborted(config.operation.value)
                log.error(f"Batch aborted: {type(exc).__name__}: {exc}")
                raise

        logger.info(
            "Batch finished: items=%d, records=%d, failed=%d",
            len(items), len(results), failed,
            extra={"operation": config.operation.value},
        )
        return results


def _advance(log: LogContext, current: ItemState, new: ItemState) -> ItemState:
    log.debug(f"Item state {current.value} -> {new.value}")
    return new


def _flatten(response: Any, index: int) -> list[OutcomeRecord]:
    """An array response yields one record per element, all for the same item.

    An empty array still yields one (empty) record so every item keeps a slot.
    """
    if isinstance(response, list) and response:
        return [OutcomeRecord.success(entry, index) for entry in response]
    if isinstance(response, list) or response is None:
        response = {}
    return [OutcomeRecord.success(response, index)]
