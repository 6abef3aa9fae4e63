"""
Device event relay endpoints.

Called by the AWS IoT bridge functions (authenticated with ``x-api-key``)
when a device connects/disconnects or reports a shadow change. Each endpoint
pushes the update to the device owner's dashboard connection through the
realtime gateway. Pushes are best effort: an offline owner does not change
the HTTP response.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from plantpal.models.database import get_db
from plantpal.models.device import Device
from plantpal.api.dependencies import get_gateway, get_shadow_client, verify_api_key
from plantpal.realtime.gateway import PresenceGateway
from plantpal.schemas.device import (
    DeviceResponse,
    MessageResponse,
    PresenceConnectionUpdate,
    ShadowAutoUpdate,
    ShadowPumpWaterUpdate,
)
from plantpal.services.shadow import ShadowClient, ShadowUpdateError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(verify_api_key)]
)


def get_device_by_thing(db: Session, thing_name: str, detail: str) -> Device:
    """Helper to resolve an IoT thing to its registered device."""
    device = db.query(Device).filter(Device.thing_name == thing_name).first()
    if not device:
        raise HTTPException(status_code=500, detail=detail)
    return device


def serialize_device(device: Device) -> dict:
    return DeviceResponse.model_validate(device).model_dump()


@router.post("/presenceUpdateConnection", response_model=MessageResponse, status_code=201)
async def presence_update_connection(
    update: PresenceConnectionUpdate,
    db: Session = Depends(get_db),
    gateway: PresenceGateway = Depends(get_gateway)
):
    """Record a device (dis)connect and notify its owner."""
    device = get_device_by_thing(db, update.thing_name, "Error finding user device")

    device.presence_connection = update.presence_connection
    db.commit()
    db.refresh(device)

    if device.presence_connection != update.presence_connection:
        raise HTTPException(status_code=400, detail="Error updating device presence connection.")

    await gateway.emit_to_user(device.user_id, "presenceUpdateConnection", {
        "device": serialize_device(device),
        "thing_name": update.thing_name,
        "presence_connection": update.presence_connection
    })
    return MessageResponse(message="Shadow connection update received")


@router.post("/shadowUpdateAuto", response_model=MessageResponse, status_code=201)
async def shadow_update_auto(
    update: ShadowAutoUpdate,
    db: Session = Depends(get_db),
    gateway: PresenceGateway = Depends(get_gateway)
):
    """Relay an accepted auto-mode shadow change to the owner."""
    device = get_device_by_thing(db, update.thing_name, "Error finding user device.")

    await gateway.emit_to_user(device.user_id, "shadowUpdateAuto", {
        "device": serialize_device(device),
        "thing_name": update.thing_name,
        "shadow_auto": update.shadow_auto
    })
    return MessageResponse(message="Shadow auto update received")


@router.post("/shadowUpdatePumpWater", response_model=MessageResponse, status_code=201)
async def shadow_update_pump_water(
    update: ShadowPumpWaterUpdate,
    db: Session = Depends(get_db),
    gateway: PresenceGateway = Depends(get_gateway),
    shadow: ShadowClient = Depends(get_shadow_client)
):
    """Relay a completed watering and reset the pump in the device shadow."""
    device = get_device_by_thing(db, update.thing_name, "Error finding user device.")

    if update.shadow_pump:
        # Pump runs once per request; switch it back off on both sides
        try:
            await run_in_threadpool(
                shadow.update_shadow,
                update.thing_name,
                {"pump": False},
                {"pump": False}
            )
        except ShadowUpdateError as e:
            raise HTTPException(status_code=500, detail=str(e))

    await gateway.emit_to_user(device.user_id, "shadowUpdatePumpWater", {
        "device": serialize_device(device),
        "thing_name": update.thing_name,
        "shadow_pump": update.shadow_pump
    })
    return MessageResponse(message="Shadow pump water update received")
