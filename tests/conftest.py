# tests/conftest.py
"""Pytest configuration and fixtures"""
import pytest
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tgbatch.core.domain import BinaryAttachment, InputItem  # noqa: E402


class RecordingDispatcher:
    """Dispatcher double: records every call, replays scripted outcomes.

    ``outcomes`` is consumed one entry per call; an Exception instance is
    raised, anything else is returned.  Once exhausted, a default ok
    response is returned.
    """

    def __init__(self, outcomes=None):
        self.calls = []
        self._outcomes = list(outcomes or [])

    async def request(self, method, endpoint, body, qs=None, form_data=None):
        self.calls.append({
            "method": method,
            "endpoint": endpoint,
            "body": body,
            "qs": qs,
            "form_data": form_data,
        })
        if self._outcomes:
            outcome = self._outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return {"ok": True, "result": {"message_id": len(self.calls)}}


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def make_dispatcher():
    return RecordingDispatcher


@pytest.fixture
def chat_id():
    """Default chat ID for tests"""
    return "-1001234567890"


@pytest.fixture
def text_items():
    """Three plain items with chat/text fields"""
    return [
        InputItem(json={"chat": "-1001", "text": "first"}),
        InputItem(json={"chat": "-1002", "text": "second"}),
        InputItem(json={"chat": "-1003", "text": "third"}),
    ]


@pytest.fixture
def pdf_item():
    """Item carrying a named PDF under the default binary property"""
    return InputItem(
        json={"chat": "-1001", "text": "report attached"},
        binary={"data": BinaryAttachment(mime_type="application/pdf", data=b"%PDF-1.4", file_name="report.pdf")},
    )


@pytest.fixture
def keyboard_json():
    return '[[{"text":"A","callback_data":"1"}]]'
