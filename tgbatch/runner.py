# tgbatch/runner.py
"""
One-call entry point and batch-file loading.

Batch file format::

    {
      "parameters": {
        "operation": "sendMessage",
        "chat_id": "={{chat}}",
        "text": "={{text}}",
        "binary_data": true,
        "binary_property_name": "data"
      },
      "items": [
        {"json": {"chat": "-100123", "text": "hello"},
         "binary": {"data": {"path": "report.pdf", "mime_type": "application/pdf"}}}
      ]
    }

Binary entries take either ``path`` (read relative to the batch file) or
``base64``; ``file_name`` defaults to the basename of ``path``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from tgbatch.core.domain import BatchConfig, BinaryAttachment, InputItem, OutcomeRecord
from tgbatch.core.errors import ValidationError
from tgbatch.core.executor import BatchExecutor
from tgbatch.core.params import MappingParameterResolver
from tgbatch.core.ports import Dispatcher
from tgbatch.schemas import BatchFile, BatchItemIn, BinaryEntryIn, describe_errors, failing_item_index


async def run_batch(
    items: Sequence[InputItem],
    parameters: Mapping[str, Any],
    *,
    continue_on_fail: bool = False,
    dispatcher: Dispatcher | None = None,
) -> list[OutcomeRecord]:
    """Resolve batch config from ``parameters`` and execute every item."""
    resolver = MappingParameterResolver(parameters, items)
    config = BatchConfig.from_parameters(resolver, continue_on_fail=continue_on_fail)

    if dispatcher is None:
        from tgbatch.transport.telegram_api import TelegramTransport
        dispatcher = TelegramTransport()

    return await BatchExecutor(dispatcher).execute(items, resolver, config)


def load_batch_file(path: str | Path) -> tuple[dict[str, Any], list[InputItem]]:
    """Read a batch file into ``(parameters, items)``.

    Raises:
        ValidationError: the document does not match ``BatchFile`` or an
            attachment path cannot be read
        OSError: the batch file itself cannot be read
    """
    path = Path(path)
    try:
        document = BatchFile.model_validate_json(path.read_bytes())
    except PydanticValidationError as exc:
        raise ValidationError(
            f"{path}: {describe_errors(exc)}",
            item_index=failing_item_index(exc),
        ) from exc

    items = [_to_input_item(item, path.parent, idx) for idx, item in enumerate(document.items)]
    return dict(document.parameters), items


def _to_input_item(item: BatchItemIn, base_dir: Path, index: int) -> InputItem:
    binary = {
        name: _load_attachment(entry, base_dir, index)
        for name, entry in item.binary.items()
    }
    return InputItem(json=item.data or {}, binary=binary)


def _load_attachment(entry: BinaryEntryIn, base_dir: Path, index: int) -> BinaryAttachment:
    if entry.base64 is not None:
        return BinaryAttachment.from_base64(entry.base64, mime_type=entry.mime_type, file_name=entry.file_name)

    file_path = base_dir / entry.path
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise ValidationError(f"Cannot read attachment {file_path}: {exc.strerror}", item_index=index) from exc
    return BinaryAttachment(
        mime_type=entry.mime_type,
        data=data,
        file_name=entry.file_name if entry.file_name is not None else file_path.name,
    )
