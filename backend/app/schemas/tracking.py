from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.models.tracking import TrackingStatusEnum


class LocationUpdate(BaseModel):
    # Field clients send camelCase; snake_case is accepted too
    model_config = ConfigDict(populate_by_name=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    speed: Optional[float] = None
    order_id: Optional[int] = Field(None, alias="orderId")
    tracking_status: Optional[TrackingStatusEnum] = Field(None, alias="trackingStatus")


class LocationUpdateResponse(BaseModel):
    success: bool = True


class TrackingPointResponse(BaseModel):
    id: int
    beautician_id: int
    order_id: Optional[int]
    latitude: float
    longitude: float
    accuracy: Optional[float]
    speed: Optional[float]
    status: TrackingStatusEnum
    timestamp: datetime

    class Config:
        from_attributes = True


class TrackingOverviewItem(BaseModel):
    id: int
    name: str
    is_online: bool
    current_latitude: Optional[float]
    current_longitude: Optional[float]
    tracking_status: Optional[str]
    last_location_update: Optional[datetime]
    current_order_id: Optional[int]
    current_order_status: Optional[str]
    has_active_issue: bool = False


class CleanupResponse(BaseModel):
    deleted: int
