# tgbatch/transport/telegram_api.py
"""
Telegram Bot API dispatcher.

Issues exactly one HTTP call per ``request()``:
- JSON body for plain items
- multipart/form-data when the item carries a file

Error classification (TransportError.retryable):
- Token invalid (401)          → NOT retryable
- Forbidden / bot blocked (403) → NOT retryable
- Bad request (400)            → NOT retryable
- Rate limiting (429)          → retryable
- Network / timeout            → retryable
- Unknown server error         → retryable

A 2xx whose body says ``ok: false`` is classified by its ``error_code``,
and treated as a bad request when there is none.

The pipeline never retries; ``retryable`` is there for callers that want
to re-submit failed items.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Iterator

import aiohttp

from tgbatch.config import settings
from tgbatch.core.errors import TransportError
from tgbatch.infra.logging_config import get_logger, mask_token
from tgbatch.infra.metrics import BatchMetrics
from tgbatch.transport.http_client import get_sender_session

logger = get_logger(__name__)


class TelegramTransport:
    """Dispatcher bound to one bot token."""

    def __init__(
        self,
        token: str | None = None,
        api_base: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self._token = token if token is not None else settings.telegram_bot_token
        self._api_base = (api_base or settings.telegram_api_base).rstrip("/")
        self._session = session

    def url(self, endpoint: str) -> str:
        return f"{self._api_base}/bot{self._token}/{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        body: dict,
        qs: dict | None = None,
        form_data: dict | None = None,
    ) -> Any:
        """
        Call a Bot API method.

        Args:
            method: HTTP method (the pipeline always uses POST)
            endpoint: Bot API method name, e.g. "sendMessage"
            body: JSON body (ignored when form_data is given)
            qs: Query string parameters
            form_data: Multipart fields; file parts are
                ``{"value": ..., "options": {"filename": ..., "contentType": ...}}``

        Returns:
            Decoded response JSON

        Raises:
            TransportError: On API or connection errors
        """
        kwargs: dict[str, Any] = {}
        if qs:
            kwargs["params"] = {k: _form_value(v) for k, v in qs.items()}
        if form_data is not None:
            kwargs["data"] = build_form_data(form_data)
            encoding = "multipart"
        else:
            kwargs["json"] = body
            encoding = "json"

        session = self._session or get_sender_session()
        try:
            with BatchMetrics.track_request(endpoint, encoding):
                async with session.request(method, self.url(endpoint), **kwargs) as resp:
                    payload = await _safe_response_json(resp)

            if 200 <= resp.status < 300 and _is_ok(payload):
                BatchMetrics.request_sent(endpoint, encoding)
                logger.info(
                    "Telegram %s ok: encoding=%s, msg_id=%s",
                    endpoint, encoding, _message_id(payload),
                    extra={"endpoint": endpoint},
                )
                return payload

            raise self._classify(resp.status, payload, endpoint)

        except TransportError:
            raise
        except aiohttp.ClientError as exc:
            message = mask_token(str(exc), self._token)
            logger.error(f"Telegram API connection error: {message}", extra={"endpoint": endpoint})
            BatchMetrics.request_failed(endpoint, 0)
            raise TransportError(0, None, message, retryable=True) from exc
        except asyncio.TimeoutError as exc:
            logger.error("Telegram API request timed out", extra={"endpoint": endpoint})
            BatchMetrics.request_failed(endpoint, 0)
            raise TransportError(0, None, "Request timed out", retryable=True) from exc

    @staticmethod
    def _classify(status: int, payload: Any, endpoint: str) -> TransportError:
        body = payload if isinstance(payload, dict) else {}
        error_desc = body.get("description", "Unknown error")
        error_code = body.get("error_code")
        BatchMetrics.request_failed(endpoint, status)

        # A 2xx carrying ok=false is a rejection; its error_code says why
        code = status
        if 200 <= status < 300:
            code = error_code if isinstance(error_code, int) else 400

        if code == 401 or error_code == 401:
            logger.error(f"Telegram API auth error (token invalid): {error_desc}")
            return TransportError(status, error_code, error_desc, retryable=False)

        if code == 403:
            logger.warning(f"Telegram API forbidden: {error_desc}")
            return TransportError(status, error_code, error_desc, retryable=False)

        if code == 400:
            logger.warning(f"Telegram API bad request on {endpoint}: {error_desc}")
            return TransportError(status, error_code, error_desc, retryable=False)

        if code == 429:
            retry_after = (body.get("parameters") or {}).get("retry_after")
            logger.warning(f"Telegram API rate limit, retry_after={retry_after}s")
            return TransportError(status, error_code, error_desc, retryable=True)

        logger.error(f"Telegram API error: status={status}, code={error_code}, msg={error_desc}")
        return TransportError(status, error_code, error_desc, retryable=True)


# ---------------------------------------------------------------------------
# Multipart encoding
# ---------------------------------------------------------------------------

def iter_form_fields(form_data: dict) -> Iterator[tuple[str, Any, str | None, str | None]]:
    """
    Yield ``(name, value, filename, content_type)`` per multipart field.

    Scalars become strings, nested values JSON text (the Bot API expects
    e.g. ``reply_markup`` JSON-serialized in form posts), file parts keep
    their byte source.  ``None`` fields are skipped.
    """
    for name, value in form_data.items():
        if value is None:
            continue
        if _is_file_part(value):
            options = value.get("options") or {}
            yield name, value["value"], options.get("filename"), options.get("contentType")
        else:
            yield name, _form_value(value), None, None


def build_form_data(form_data: dict) -> aiohttp.FormData:
    form = aiohttp.FormData()
    for name, value, filename, content_type in iter_form_fields(form_data):
        if filename is None and content_type is None:
            form.add_field(name, value)
        else:
            form.add_field(name, value, filename=filename, content_type=content_type)
    return form


def _is_file_part(value: Any) -> bool:
    return isinstance(value, dict) and "value" in value and "options" in value


def _form_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

async def _safe_response_json(resp: aiohttp.ClientResponse) -> Any:
    """Parse JSON from response, returning None if body is not valid JSON."""
    try:
        return await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, json.JSONDecodeError, UnicodeDecodeError):
        logger.warning(f"Telegram API returned non-JSON body: status={resp.status}")
        return None


def _is_ok(payload: Any) -> bool:
    if payload is None:
        return False
    if isinstance(payload, dict):
        return payload.get("ok", True) is not False
    return True


def _message_id(payload: Any) -> Any:
    if isinstance(payload, dict):
        result = payload.get("result")
        if isinstance(result, dict):
            return result.get("message_id", "unknown")
    return "n/a"
