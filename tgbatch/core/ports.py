# tgbatch/core/ports.py
from __future__ import annotations
from typing import Any, Optional, Protocol


# ============================================================================
# HOST-SUPPLIED COLLABORATORS
# ============================================================================

class ParameterResolver(Protocol):
    def get(self, name: str, index: int, default: Any = ...) -> Any:
        """
        Value of parameter ``name`` for item ``index``.

        Falls back to ``default`` when the parameter is not set; raises
        ValidationError when it is not set and no default was given.
        """
        ...


class Dispatcher(Protocol):
    async def request(
        self,
        method: str,
        endpoint: str,
        body: dict,
        qs: Optional[dict] = None,
        form_data: Optional[dict] = None,
    ) -> Any:
        """
        Issue one Bot API call and return the decoded response JSON.

        Sends ``form_data`` as multipart/form-data when given, otherwise
        ``body`` as a JSON document.  Raises TransportError on failure.
        """
        ...
