from enum import Enum
from typing import Optional

from pydantic import BaseModel


class LocationType(str, Enum):
    DORM = "dorm"
    BUILDING = "building"
    FACILITY = "facility"


class LocationCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    address: Optional[str] = None
