"""
Push device token schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from attendease.schemas.common.base import CamelSchema

__all__ = ["DeviceTokenRegister", "DeviceTokenView"]


class DeviceTokenRegister(CamelSchema):
    token: str = Field(..., min_length=1, max_length=512, description="FCM registration token")
    device_id: Optional[str] = Field(default=None, max_length=255, description="Client device identifier")


class DeviceTokenView(CamelSchema):
    id: str
    token: str
    device_id: Optional[str] = None
    created_at: datetime
