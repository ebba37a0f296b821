from pydantic import BaseModel
from typing import Any, Dict, Optional


class DashboardLocation(BaseModel):
    role: str
    path: Optional[str] = None


class DashboardResponse(BaseModel):
    dashboard: str
    role: str
    summary: Dict[str, Any] = {}
