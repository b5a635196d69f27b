# tests/test_operations.py
"""Tests for operation options and the attachment field name mapper"""
import pytest

from tgbatch.core.domain import BatchConfig, OperationKind, ReplyMarkupMode
from tgbatch.core.errors import UnsupportedOperationError
from tgbatch.core.field_names import get_attachment_field_name
from tgbatch.core.operations import get_operation_options


class TestFieldNameMapper:
    def test_send_message(self):
        assert get_attachment_field_name(OperationKind.SEND_MESSAGE) == "message"

    def test_edit_message_text(self):
        assert get_attachment_field_name(OperationKind.EDIT_MESSAGE_TEXT) == "editmessagetext"

    def test_accepts_raw_value(self):
        assert get_attachment_field_name("sendMessage") == "message"

    def test_total_over_supported_operations(self):
        for operation in OperationKind:
            assert get_attachment_field_name(operation)

    @pytest.mark.parametrize("operation", ["sendPhoto", "", "SENDMESSAGE", None])
    def test_unknown_operation(self, operation):
        with pytest.raises(UnsupportedOperationError):
            get_attachment_field_name(operation)


class TestOperationOptions:
    def test_endpoints(self):
        assert get_operation_options(OperationKind.SEND_MESSAGE).endpoint == "sendMessage"
        assert get_operation_options(OperationKind.EDIT_MESSAGE_TEXT).endpoint == "editMessageText"

    def test_edit_excludes_disable_notification(self):
        options = get_operation_options(OperationKind.EDIT_MESSAGE_TEXT)
        assert "disable_notification" not in options.additional_fields
        assert "disable_web_page_preview" in options.additional_fields
        assert "reply_to_message_id" in options.additional_fields

    def test_send_allows_thread_id(self):
        options = get_operation_options(OperationKind.SEND_MESSAGE)
        assert "message_thread_id" in options.additional_fields
        assert "disable_notification" in options.additional_fields

    def test_same_reply_markup_modes_for_both(self):
        send = get_operation_options(OperationKind.SEND_MESSAGE)
        edit = get_operation_options(OperationKind.EDIT_MESSAGE_TEXT)
        assert send.reply_markup_modes == edit.reply_markup_modes
        assert ReplyMarkupMode.INLINE_KEYBOARD_JSON in send.reply_markup_modes

    def test_unknown_operation(self):
        with pytest.raises(UnsupportedOperationError):
            get_operation_options("deleteMessage")

    def test_every_operation_has_options(self):
        for operation in OperationKind:
            assert get_operation_options(operation).endpoint == operation.value


class TestOperationKind:
    def test_parse_value(self):
        assert OperationKind.parse("editMessageText") is OperationKind.EDIT_MESSAGE_TEXT

    def test_parse_unknown(self):
        with pytest.raises(UnsupportedOperationError, match="sendSticker"):
            OperationKind.parse("sendSticker")

    def test_batch_config_coerces_operation(self):
        config = BatchConfig(operation="sendMessage")
        assert config.operation is OperationKind.SEND_MESSAGE
