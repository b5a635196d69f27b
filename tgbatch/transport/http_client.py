# tgbatch/transport/http_client.py
"""
Shared HTTP client session for outbound Bot API calls.

One lazily created aiohttp.ClientSession is reused for every item of
every batch, so a batch does not pay TCP/TLS setup per request.
Timeouts and pool size come from settings.

Call ``close_all_sessions()`` once when the process is done dispatching.
"""
from __future__ import annotations

import aiohttp

from tgbatch.config import settings
from tgbatch.infra.logging_config import get_logger

logger = get_logger(__name__)

_sessions: dict[str, aiohttp.ClientSession] = {}


def _get_or_create(
    name: str,
    timeout: aiohttp.ClientTimeout,
    limit: int = 10,
) -> aiohttp.ClientSession:
    """Return an existing session or create a new one."""
    session = _sessions.get(name)
    if session is None or session.closed:
        session = aiohttp.ClientSession(
            timeout=timeout,
            connector=aiohttp.TCPConnector(
                keepalive_timeout=30,
                limit=limit,
                enable_cleanup_closed=True,
            ),
        )
        _sessions[name] = session
        logger.debug("HTTP session '%s' created (limit=%d)", name, limit)
    return session


def get_sender_session() -> aiohttp.ClientSession:
    """Session for Bot API calls."""
    return _get_or_create(
        "sender",
        aiohttp.ClientTimeout(
            total=settings.http_timeout_seconds,
            connect=settings.http_connect_timeout_seconds,
        ),
        limit=settings.http_pool_limit,
    )


async def close_all_sessions() -> None:
    """Gracefully close every managed session."""
    for name in list(_sessions):
        session = _sessions.pop(name, None)
        if session is not None and not session.closed:
            await session.close()
            logger.debug("HTTP session '%s' closed", name)
