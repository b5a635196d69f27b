# tgbatch/core/payload_builder.py
"""
Request construction for one batch item.

Body layout per operation:
- sendMessage:      chat_id, text
- editMessageText:  chat_id + message_id, or inline_message_id; text

Both then merge the operation's recognised ``additional_fields`` and an
optional inline keyboard.  In binary mode the same body is sent as
multipart form fields, so ``disable_notification`` is turned into the
string "true"/"false" and the item's file is attached under the field
name for the operation.  The JSON path keeps native booleans.
"""
from __future__ import annotations

from typing import Any, Mapping

from tgbatch.core.domain import (
    AttachmentDescriptor,
    BatchConfig,
    InputItem,
    MessageType,
    OperationKind,
    ReplyMarkupMode,
    RequestPayload,
)
from tgbatch.core.errors import UnsupportedOperationError, ValidationError
from tgbatch.core.field_names import get_attachment_field_name
from tgbatch.core.keyboard import build_reply_markup
from tgbatch.core.operations import OperationOptions, get_operation_options
from tgbatch.core.ports import ParameterResolver
from tgbatch.infra.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BINARY_PROPERTY = "data"

_TRUTHY_STRINGS = frozenset({"true", "1", "yes", "on"})


class PayloadBuilder:
    """Builds a fresh RequestPayload per item. Holds no per-batch state."""

    def build(
        self,
        item: InputItem,
        index: int,
        config: BatchConfig,
        resolver: ParameterResolver,
    ) -> RequestPayload:
        options = get_operation_options(config.operation)
        payload = RequestPayload(endpoint=options.endpoint, method="POST")
        body = payload.body

        if config.operation is OperationKind.EDIT_MESSAGE_TEXT:
            self._edit_message_text(body, index, resolver)
        elif config.operation is OperationKind.SEND_MESSAGE:
            self._send_message(body, index, resolver)
        else:
            raise UnsupportedOperationError(config.operation)

        additional = self._additional_fields(index, resolver)
        self._merge_additional_fields(body, additional, options, config.operation, index)
        self._add_reply_markup(body, index, resolver, options)

        if config.binary_data:
            body["disable_notification"] = _form_flag(body.get("disable_notification"))
            payload.attachment = self._resolve_attachment(
                item, index, config.operation, resolver, additional,
            )

        logger.debug(
            "Built %s payload: fields=%s, multipart=%s",
            payload.endpoint, sorted(body), payload.is_multipart,
            extra={"item_index": index, "operation": config.operation.value},
        )
        return payload

    # ------------------------------------------------------------------
    # Operation bodies
    # ------------------------------------------------------------------

    def _edit_message_text(self, body: dict, index: int, resolver: ParameterResolver) -> None:
        raw_type = resolver.get("message_type", index, MessageType.MESSAGE.value)
        try:
            message_type = MessageType(raw_type)
        except ValueError:
            raise ValidationError(f"Unknown message type {raw_type!r}") from None

        if message_type is MessageType.INLINE_MESSAGE:
            body["inline_message_id"] = _required(resolver, "inline_message_id", index)
        else:
            body["chat_id"] = _required(resolver, "chat_id", index)
            body["message_id"] = _required(resolver, "message_id", index)

        body["text"] = _required(resolver, "text", index)

    def _send_message(self, body: dict, index: int, resolver: ParameterResolver) -> None:
        body["chat_id"] = _required(resolver, "chat_id", index)
        body["text"] = _required(resolver, "text", index)

    # ------------------------------------------------------------------
    # Optional parts
    # ------------------------------------------------------------------

    @staticmethod
    def _additional_fields(index: int, resolver: ParameterResolver) -> Mapping[str, Any]:
        additional = resolver.get("additional_fields", index, {}) or {}
        if not isinstance(additional, Mapping):
            raise ValidationError("additional_fields must be an object")
        return additional

    @staticmethod
    def _merge_additional_fields(
        body: dict,
        additional: Mapping[str, Any],
        options: OperationOptions,
        operation: OperationKind,
        index: int,
    ) -> None:
        for name, value in additional.items():
            if name in options.additional_fields:
                body[name] = value
            elif name != "file_name":
                logger.warning(
                    "Ignoring additional field %r: not accepted by %s",
                    name, operation.value,
                    extra={"item_index": index, "operation": operation.value},
                )

    @staticmethod
    def _add_reply_markup(
        body: dict,
        index: int,
        resolver: ParameterResolver,
        options: OperationOptions,
    ) -> None:
        raw_mode = resolver.get("reply_markup", index, ReplyMarkupMode.NONE.value)
        try:
            mode = ReplyMarkupMode(raw_mode)
        except ValueError:
            raise ValidationError(f"Unknown reply markup mode {raw_mode!r}") from None

        if mode not in options.reply_markup_modes:
            raise ValidationError(f"Reply markup mode {mode.value!r} is not available for {options.endpoint}")

        if mode is ReplyMarkupMode.INLINE_KEYBOARD_JSON:
            body["reply_markup"] = build_reply_markup(
                _required(resolver, "inline_keyboard_json", index),
            )

    @staticmethod
    def _resolve_attachment(
        item: InputItem,
        index: int,
        operation: OperationKind,
        resolver: ParameterResolver,
        additional: Mapping[str, Any],
    ) -> AttachmentDescriptor:
        property_name = resolver.get("binary_property_name", index, DEFAULT_BINARY_PROPERTY)
        attachment = item.binary.get(property_name)
        if attachment is None:
            raise ValidationError(f"Item has no binary property '{property_name}'")

        field_name = get_attachment_field_name(operation)

        override = resolver.get("file_name", index, "") or additional.get("file_name") or ""
        filename = override or attachment.file_name
        if not filename:
            raise ValidationError(
                f"File name is needed to {operation.value}. Set the file name on binary "
                f"property '{property_name}' or pass a file_name override."
            )

        return AttachmentDescriptor(
            field_name=field_name,
            filename=str(filename),
            content_type=attachment.mime_type,
            source=attachment.source,
        )


def _required(resolver: ParameterResolver, name: str, index: int) -> Any:
    value = resolver.get(name, index, None)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Parameter '{name}' is required")
    return value


def _form_flag(value: Any) -> str:
    """Multipart fields are strings: render a flag as "true"/"false"."""
    if isinstance(value, str):
        return "true" if value.strip().lower() in _TRUTHY_STRINGS else "false"
    return "true" if value else "false"
