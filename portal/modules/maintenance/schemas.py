from pydantic import BaseModel
from datetime import datetime


class ReconcileReport(BaseModel):
    teams_deleted: int = 0
    benefits_marked_assigned: int = 0
    benefits_released: int = 0
    ran_at: datetime
