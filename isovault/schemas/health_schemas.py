# isovault/schemas/health_schemas.py
from pydantic import BaseModel
from typing import Dict, Optional


class ComponentStatus(BaseModel):
    status: str
    detail: Optional[str] = None


class StatusObject(BaseModel):
    indicator: str
    description: str


class HealthResponse(BaseModel):
    service: str
    time: str
    status: StatusObject
    components: Dict[str, ComponentStatus]
