from plantpal.schemas.device import (
    DeviceResponse, PresenceConnectionUpdate, ShadowAutoUpdate,
    ShadowPumpWaterUpdate, MessageResponse
)

__all__ = [
    "DeviceResponse", "PresenceConnectionUpdate", "ShadowAutoUpdate",
    "ShadowPumpWaterUpdate", "MessageResponse"
]
