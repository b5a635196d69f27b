# tests/test_executor.py
"""Tests for the sequential batch executor"""
from __future__ import annotations

import pytest

from tgbatch.core.domain import BatchConfig, BinaryAttachment, InputItem, OperationKind
from tgbatch.core.errors import TransportError, ValidationError
from tgbatch.core.executor import BatchExecutor
from tgbatch.core.params import MappingParameterResolver

SEND_PARAMS = {"chat_id": "={{chat}}", "text": "={{text}}"}


def _config(**kwargs):
    return BatchConfig(operation=OperationKind.SEND_MESSAGE, **kwargs)


async def _run(dispatcher, items, params=SEND_PARAMS, **config):
    resolver = MappingParameterResolver(params, items)
    return await BatchExecutor(dispatcher).execute(items, resolver, _config(**config))


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_one_record_per_item_in_order(self, dispatcher, text_items):
        records = await _run(dispatcher, text_items)

        assert [r.item_index for r in records] == [0, 1, 2]
        assert all(r.succeeded for r in records)
        assert [c["body"]["text"] for c in dispatcher.calls] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_json_encoding_without_binary(self, dispatcher, text_items):
        await _run(dispatcher, text_items[:1])

        call = dispatcher.calls[0]
        assert call["method"] == "POST"
        assert call["endpoint"] == "sendMessage"
        assert call["form_data"] is None
        assert call["qs"] == {}
        assert call["body"] == {"chat_id": "-1001", "text": "first"}

    @pytest.mark.asyncio
    async def test_response_kept_as_is(self, make_dispatcher, text_items):
        response = {"ok": True, "result": {"message_id": 99, "chat": {"id": -1001}}}
        dispatcher = make_dispatcher([response])

        records = await _run(dispatcher, text_items[:1])
        assert records[0].json == response

    @pytest.mark.asyncio
    async def test_array_response_flattened_with_same_index(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([
            {"ok": True},
            [{"message_id": 1}, {"message_id": 2}],
            {"ok": True},
        ])

        records = await _run(dispatcher, text_items)

        assert [r.item_index for r in records] == [0, 1, 1, 2]
        assert records[1].json == {"message_id": 1}
        assert records[2].json == {"message_id": 2}

    @pytest.mark.asyncio
    async def test_empty_array_response_keeps_slot(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([[]])
        records = await _run(dispatcher, text_items[:1])
        assert len(records) == 1
        assert records[0].json == {}
        assert records[0].succeeded

    @pytest.mark.asyncio
    async def test_empty_batch(self, dispatcher):
        records = await _run(dispatcher, [])
        assert records == []
        assert dispatcher.calls == []


class TestAbortOnFailure:
    @pytest.mark.asyncio
    async def test_transport_error_aborts_batch(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([
            {"ok": True},
            TransportError(400, 400, "Bad Request: chat not found"),
        ])

        with pytest.raises(TransportError) as exc_info:
            await _run(dispatcher, text_items)

        assert exc_info.value.item_index == 1
        assert "chat not found" in str(exc_info.value)
        # third item never dispatched
        assert len(dispatcher.calls) == 2

    @pytest.mark.asyncio
    async def test_build_error_aborts_before_dispatch(self, dispatcher):
        items = [
            InputItem(json={"chat": "-1001", "text": "ok"}),
            InputItem(json={"chat": "-1002"}),
            InputItem(json={"chat": "-1003", "text": "never"}),
        ]

        with pytest.raises(ValidationError) as exc_info:
            await _run(dispatcher, items)

        assert exc_info.value.item_index == 1
        assert "(item 1)" in str(exc_info.value)
        assert len(dispatcher.calls) == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([RuntimeError("boom")])

        with pytest.raises(RuntimeError, match="boom"):
            await _run(dispatcher, text_items)
        assert len(dispatcher.calls) == 1


class TestContinueOnFail:
    @pytest.mark.asyncio
    async def test_failure_record_takes_item_slot(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([
            {"ok": True},
            TransportError(403, 403, "Forbidden: bot was blocked by the user"),
            {"ok": True},
        ])

        records = await _run(dispatcher, text_items, continue_on_fail=True)

        assert [r.item_index for r in records] == [0, 1, 2]
        assert [r.succeeded for r in records] == [True, False, True]
        assert records[1].json == {}
        assert "bot was blocked" in records[1].error
        assert len(dispatcher.calls) == 3

    @pytest.mark.asyncio
    async def test_failure_count_matches_failed_items(self, dispatcher):
        items = [
            InputItem(json={"chat": "-1001", "text": "ok"}),
            InputItem(json={"text": "no chat"}),
            InputItem(json={"chat": "-1003", "text": "ok"}),
            InputItem(json={"chat": "-1004"}),
        ]

        records = await _run(dispatcher, items, continue_on_fail=True)

        assert len(records) == 4
        assert sum(1 for r in records if not r.succeeded) == 2
        # failed items never reach the transport
        assert len(dispatcher.calls) == 2

    @pytest.mark.asyncio
    async def test_malformed_keyboard_fails_only_its_item(self, dispatcher):
        items = [
            InputItem(json={"chat": "-1001", "kb": '[[{"text":"A","callback_data":"1"}]]'}),
            InputItem(json={"chat": "-1002", "kb": "[[{"}),
        ]
        params = {
            "chat_id": "={{chat}}",
            "text": "pick",
            "reply_markup": "inlineKeyboardJSON",
            "inline_keyboard_json": "={{kb}}",
        }

        records = await _run(dispatcher, items, params=params, continue_on_fail=True)

        assert records[0].succeeded
        assert not records[1].succeeded
        assert "not valid JSON" in records[1].error
        assert dispatcher.calls[0]["body"]["reply_markup"] == {
            "inline_keyboard": [[{"text": "A", "callback_data": "1"}]],
        }

    @pytest.mark.asyncio
    async def test_failure_message_has_no_index_suffix(self, make_dispatcher, text_items):
        dispatcher = make_dispatcher([TransportError(0, None, "Connection reset")])

        records = await _run(dispatcher, text_items[:1], continue_on_fail=True)

        assert records[0].error == "Telegram API error 0 (code=None): Connection reset"


class TestBinaryDispatch:
    @pytest.mark.asyncio
    async def test_multipart_dispatch(self, dispatcher, pdf_item):
        await _run(dispatcher, [pdf_item], binary_data=True)

        call = dispatcher.calls[0]
        assert call["body"] == {}
        form = call["form_data"]
        assert form["disable_notification"] == "false"
        assert form["message"]["options"] == {"filename": "report.pdf", "contentType": "application/pdf"}

    @pytest.mark.asyncio
    async def test_missing_filename_skips_http_call(self, dispatcher):
        item = InputItem(
            json={"chat": "-1001", "text": "x"},
            binary={"data": BinaryAttachment(mime_type="image/png", data=b"png")},
        )

        records = await _run(dispatcher, [item], binary_data=True, continue_on_fail=True)

        assert not records[0].succeeded
        assert "File name is needed" in records[0].error
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_binary_flag_read_once_from_config(self, dispatcher, text_items):
        # binary_data set as an item-level parameter is ignored; only BatchConfig counts
        params = dict(SEND_PARAMS, binary_data=True)
        await _run(dispatcher, [text_items[0]], params=params)
        assert dispatcher.calls[0]["form_data"] is None
