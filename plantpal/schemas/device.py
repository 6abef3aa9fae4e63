from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    device_id: int
    cat_num: str
    user_id: int
    location: Optional[str] = None
    thing_name: str
    presence_connection: bool


class PresenceConnectionUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    thing_name: str = Field(..., alias="thingName", min_length=1)
    presence_connection: bool = Field(..., alias="presenceConnection")


class ShadowAutoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    thing_name: str = Field(..., alias="thingName", min_length=1)
    shadow_auto: bool = Field(..., alias="shadowAuto")


class ShadowPumpWaterUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    thing_name: str = Field(..., alias="thingName", min_length=1)
    shadow_pump: bool = Field(..., alias="shadowPump")


class MessageResponse(BaseModel):
    message: str
