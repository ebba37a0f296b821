"""
Repairs the leftovers of multi-step writes that failed halfway and whose
rollback also failed: teams without members, and benefits whose is_assigned
flag disagrees with benefit_assignments.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from supabase import Client
from portal.config import settings
from portal.database.supabase_client import SupabaseClient, chunked, fetch_all, fetch_in
from portal.modules.maintenance.schemas import ReconcileReport

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(self, supabase: Client, grace_sec: Optional[int] = None):
        self.supabase = supabase
        self.grace_sec = settings.reconcile_grace_sec if grace_sec is None else grace_sec

    def run(self) -> ReconcileReport:
        now = datetime.now(timezone.utc)
        cutoff = (now - timedelta(seconds=self.grace_sec)).isoformat()
        report = ReconcileReport(
            teams_deleted=self.delete_memberless_teams(cutoff),
            benefits_marked_assigned=self.mark_assigned_benefits(),
            benefits_released=self.release_unassigned_benefits(cutoff),
            ran_at=now,
        )
        if report.teams_deleted or report.benefits_marked_assigned or report.benefits_released:
            logger.info(
                f"Reconciled: {report.teams_deleted} teams deleted, "
                f"{report.benefits_marked_assigned} benefits marked assigned, "
                f"{report.benefits_released} benefits released"
            )
        else:
            logger.debug("Reconciliation found nothing to repair")
        return report

    def _assigned_among(self, benefit_ids: List[str]) -> set:
        rows = fetch_in(
            lambda: self.supabase.table("benefit_assignments").select("id, benefit_id").order("id"),
            "benefit_id", benefit_ids,
        )
        return {row["benefit_id"] for row in rows}

    def _set_assigned(self, ids: List[str], value: bool):
        for chunk in chunked(ids):
            self.supabase.table("benefits")\
                .update({"is_assigned": value, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .in_("id", chunk)\
                .execute()

    def delete_memberless_teams(self, cutoff: str) -> int:
        teams = fetch_all(
            lambda: self.supabase.table("teams").select("id").lt("created_at", cutoff).order("id")
        )
        if not teams:
            return 0
        team_ids = [t["id"] for t in teams]
        members = fetch_in(
            lambda: self.supabase.table("team_members").select("id, team_id").order("id"),
            "team_id", team_ids,
        )
        occupied = {m["team_id"] for m in members}
        orphans: List[str] = [team_id for team_id in team_ids if team_id not in occupied]
        if not orphans:
            return 0
        for chunk in chunked(orphans):
            self.supabase.table("teams")\
                .delete()\
                .in_("id", chunk)\
                .execute()
        logger.info(f"Deleted memberless teams: {orphans}")
        return len(orphans)

    def mark_assigned_benefits(self) -> int:
        unflagged = fetch_all(
            lambda: self.supabase.table("benefits").select("id").eq("is_assigned", False).order("id")
        )
        if not unflagged:
            return 0
        assigned = self._assigned_among([b["id"] for b in unflagged])
        ids = [b["id"] for b in unflagged if b["id"] in assigned]
        if not ids:
            return 0
        self._set_assigned(ids, True)
        return len(ids)

    def release_unassigned_benefits(self, cutoff: str) -> int:
        flagged = fetch_all(
            lambda: self.supabase.table("benefits")
            .select("id")
            .eq("is_assigned", True)
            .lt("updated_at", cutoff)
            .order("id")
        )
        if not flagged:
            return 0
        assigned = self._assigned_among([b["id"] for b in flagged])
        ids = [b["id"] for b in flagged if b["id"] not in assigned]
        if not ids:
            return 0
        self._set_assigned(ids, False)
        return len(ids)


def run_reconciliation() -> Optional[ReconcileReport]:
    try:
        return Reconciler(SupabaseClient.get_service_client()).run()
    except Exception as e:
        logger.error(f"Error in reconciliation sweep: {str(e)}")
        return None


async def reconcile_loop():
    """Background task that periodically repairs partial writes"""
    while True:
        await asyncio.to_thread(run_reconciliation)
        await asyncio.sleep(settings.reconcile_interval_sec)
