from fastapi import Header, HTTPException, Request

from plantpal.config import settings
from plantpal.errors import UninitializedGatewayError
from plantpal.realtime.gateway import PresenceGateway
from plantpal.services.shadow import ShadowClient


async def verify_api_key(x_api_key: str = Header(None)) -> None:
    """Guard for endpoints called by the IoT bridge functions."""
    if not x_api_key or x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_gateway(request: Request) -> PresenceGateway:
    """Return the process-wide realtime gateway created at startup."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None or not gateway.is_initialized:
        raise UninitializedGatewayError()
    return gateway


def get_shadow_client(request: Request) -> ShadowClient:
    client = getattr(request.app.state, "shadow_client", None)
    if client is None:
        client = ShadowClient()
        request.app.state.shadow_client = client
    return client
