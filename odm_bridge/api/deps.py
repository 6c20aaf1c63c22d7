# File: odm_bridge/api/deps.py

from collections.abc import Generator

from fastapi import Depends

from odm_bridge.core.config import Settings, get_settings
from odm_bridge.services.webodm_client import WebODMClient


def get_webodm_client(
    settings: Settings = Depends(get_settings),
) -> Generator[WebODMClient, None, None]:
    """
    FastAPI dependency that provides a WebODM client for one request.

    The client memoises its token, so a request authenticates at most once
    and nothing is shared with the next request.

    Usage in route functions:
        client: WebODMClient = Depends(get_webodm_client)
    """
    client = WebODMClient(settings)
    try:
        yield client
    finally:
        client.session.close()
