from fastapi import APIRouter, Depends, HTTPException, Query
from portal.database.supabase_client import get_supabase
from portal.modules.maintenance.reconciler import Reconciler
from portal.modules.maintenance.schemas import ReconcileReport
from portal.core.dependencies import require_permission
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/reconcile", response_model=ReconcileReport)
async def reconcile(
    grace_sec: Optional[int] = Query(default=None, ge=0),
    profile: Dict = Depends(require_permission("maintenance:run")),
    supabase: Client = Depends(get_supabase)
):
    """Run one reconciliation sweep now"""
    try:
        return Reconciler(supabase, grace_sec=grace_sec).run()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
