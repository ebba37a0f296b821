from supabase import Client
from portal.modules.benefits.schemas import (
    VendorCreate, VendorUpdate, VendorResponse, BenefitCreate, BenefitBulkCreate,
    BenefitUpdate, BenefitResponse, BenefitBatchResponse, AvailableCountResponse,
    AssignmentResponse, AssignmentResult, MyBenefitResponse
)
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
from pydantic import ValidationError
from portal.database.supabase_client import fetch_all, fetch_in
import csv
import io
import logging

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "provider_name", "provider_website", "coupon_code", "redemption_instructions",
    "expiry_date", "user_type", "vendor_id",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_benefits_csv(text: str) -> List[BenefitCreate]:
    """Parse an uploaded coupon sheet into benefit rows, reporting the first bad line"""
    reader = csv.DictReader(io.StringIO(text))
    missing = [h for h in ("coupon_code", "vendor_id") if h not in (reader.fieldnames or [])]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"CSV is missing required columns: {', '.join(missing)}"
        )

    rows = []
    for line_no, record in enumerate(reader, start=2):
        values = {
            key: (record.get(key) or "").strip() or None
            for key in CSV_HEADERS
        }
        if not values["coupon_code"]:
            continue
        if values["user_type"] is None:
            values["user_type"] = "all"
        try:
            rows.append(BenefitCreate(**values))
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid row on line {line_no}: {e.errors()[0]['msg']}")
    if not rows:
        raise HTTPException(status_code=400, detail="CSV contains no coupon codes")
    return rows


class BenefitService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Vendors

    def list_vendors(self) -> List[VendorResponse]:
        try:
            result = self.supabase.table("vendors")\
                .select("*")\
                .order("name")\
                .execute()
            return [VendorResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_vendor(self, vendor_id: str) -> VendorResponse:
        try:
            result = self.supabase.table("vendors")\
                .select("*")\
                .eq("id", vendor_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Vendor not found")
        return VendorResponse(**result.data[0])

    def create_vendor(self, vendor_data: VendorCreate) -> VendorResponse:
        try:
            result = self.supabase.table("vendors").insert(vendor_data.model_dump(mode="json")).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create vendor")
            logger.info(f"Vendor {result.data[0]['id']} created")
            return VendorResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_vendor(self, vendor_id: str, vendor_data: VendorUpdate) -> VendorResponse:
        update_data = vendor_data.model_dump(mode="json", exclude_unset=True)
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("vendors")\
                .update(update_data)\
                .eq("id", vendor_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Vendor not found")
            return VendorResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_vendor(self, vendor_id: str) -> bool:
        try:
            result = self.supabase.table("vendors")\
                .delete()\
                .eq("id", vendor_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Vendor not found")
        return True

    # Benefits

    def list_benefits(
        self,
        vendor_id: Optional[str] = None,
        is_assigned: Optional[bool] = None,
        order: str = "newest"
    ) -> List[BenefitResponse]:
        """Newest first by default. order="allocation" lists oldest first,
        the order in which _allocate hands benefits out."""
        def build():
            query = self.supabase.table("benefits").select("*")
            if vendor_id:
                query = query.eq("vendor_id", vendor_id)
            if is_assigned is not None:
                query = query.eq("is_assigned", is_assigned)
            newest = order == "newest"
            return query.order("created_at", desc=newest).order("id", desc=newest)
        try:
            return [BenefitResponse(**row) for row in fetch_all(build)]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _insert_benefits(self, rows: List[Dict]) -> BenefitBatchResponse:
        try:
            result = self.supabase.table("benefits").insert(rows).execute()
            created = [BenefitResponse(**row) for row in result.data or []]
            logger.info(f"Created {len(created)} benefits")
            return BenefitBatchResponse(created=len(created), benefits=created)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_benefit(self, benefit_data: BenefitCreate) -> BenefitResponse:
        self.get_vendor(benefit_data.vendor_id)
        batch = self._insert_benefits([{
            **benefit_data.model_dump(mode="json"),
            "is_active": True,
            "is_assigned": False,
        }])
        if not batch.benefits:
            raise HTTPException(status_code=500, detail="Failed to create benefit")
        return batch.benefits[0]

    def create_bulk(self, bulk_data: BenefitBulkCreate) -> BenefitBatchResponse:
        """One benefit per non-empty line of coupon_codes"""
        codes = bulk_data.codes()
        if not codes:
            raise HTTPException(status_code=400, detail="No coupon codes provided")
        self.get_vendor(bulk_data.vendor_id)
        expiry = bulk_data.expiry_date.isoformat() if bulk_data.expiry_date else None
        return self._insert_benefits([
            {
                "vendor_id": bulk_data.vendor_id,
                "coupon_code": code,
                "expiry_date": expiry,
                "user_type": bulk_data.user_type,
                "is_active": bulk_data.is_active,
                "is_assigned": False,
            }
            for code in codes
        ])

    def create_from_csv(self, text: str) -> BenefitBatchResponse:
        rows = parse_benefits_csv(text)
        return self._insert_benefits([
            {**row.model_dump(mode="json"), "is_active": True, "is_assigned": False}
            for row in rows
        ])

    def update_benefit(self, benefit_id: str, benefit_data: BenefitUpdate) -> BenefitResponse:
        update_data = benefit_data.model_dump(mode="json", exclude_unset=True)
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("benefits")\
                .update(update_data)\
                .eq("id", benefit_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Benefit not found")
            return BenefitResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_benefit(self, benefit_id: str) -> bool:
        try:
            assigned = self.supabase.table("benefit_assignments")\
                .select("id")\
                .eq("benefit_id", benefit_id)\
                .limit(1)\
                .execute()
            if assigned.data:
                raise HTTPException(status_code=409, detail="Benefit is assigned and cannot be deleted")
            result = self.supabase.table("benefits")\
                .delete()\
                .eq("id", benefit_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Benefit not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _available_benefits(self, vendor_id: Optional[str] = None) -> List[Dict]:
        def build():
            query = self.supabase.table("benefits")\
                .select("*")\
                .eq("is_active", True)\
                .eq("is_assigned", False)
            if vendor_id:
                query = query.eq("vendor_id", vendor_id)
            return query.order("created_at").order("id")
        return fetch_all(build)

    def count_available(self, vendor_id: Optional[str] = None) -> AvailableCountResponse:
        try:
            return AvailableCountResponse(
                vendor_id=vendor_id,
                available=len(self._available_benefits(vendor_id))
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Assignment

    def _release_claims(self, benefit_ids: List[str]):
        if not benefit_ids:
            return
        try:
            self.supabase.table("benefits")\
                .update({"is_assigned": False, "updated_at": _now()})\
                .in_("id", benefit_ids)\
                .execute()
            logger.info(f"Released {len(benefit_ids)} benefit claims")
        except Exception as e:
            # Left for the reconciliation sweep
            logger.error(f"Failed to release benefit claims {benefit_ids}: {e}")

    def _allocate(self, vendor_id: str, user_ids: List[str]) -> List[AssignmentResponse]:
        """Pair users with the vendor's oldest available benefits.

        Every benefit is claimed with a conditional update before any
        assignment row is written, so two concurrent allocations can never
        hand out the same coupon. On any failure the claims taken so far are
        released.
        """
        try:
            available = self._available_benefits(vendor_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if len(available) < len(user_ids):
            raise HTTPException(
                status_code=400,
                detail=f"Not enough benefits available for all users: {len(available)} available, {len(user_ids)} needed"
            )

        claimed: List[str] = []
        for benefit in available[:len(user_ids)]:
            try:
                result = self.supabase.table("benefits")\
                    .update({"is_assigned": True, "updated_at": _now()})\
                    .eq("id", benefit["id"])\
                    .eq("is_assigned", False)\
                    .execute()
            except Exception as e:
                self._release_claims(claimed)
                raise HTTPException(status_code=500, detail=str(e))
            if not result.data:
                self._release_claims(claimed)
                raise HTTPException(
                    status_code=409,
                    detail="Benefits were assigned concurrently, please retry"
                )
            claimed.append(benefit["id"])

        rows = [
            {"user_id": user_id, "benefit_id": benefit_id, "is_redeemed": False}
            for user_id, benefit_id in zip(user_ids, claimed)
        ]
        try:
            result = self.supabase.table("benefit_assignments").insert(rows).execute()
            if len(result.data or []) != len(rows):
                raise RuntimeError("assignment insert returned fewer rows than requested")
        except Exception as e:
            logger.error(f"Assignment insert for vendor {vendor_id} failed: {e}")
            self._release_claims(claimed)
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Assigned {len(rows)} benefits of vendor {vendor_id}")
        return [AssignmentResponse(**row) for row in result.data]

    def assign_manual(self, vendor_id: str, user_ids: List[str]) -> AssignmentResult:
        self.get_vendor(vendor_id)
        try:
            found = fetch_in(
                lambda: self.supabase.table("profiles").select("id").order("id"), "id", user_ids
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        missing = set(user_ids) - {p["id"] for p in found}
        if missing:
            raise HTTPException(status_code=404, detail=f"Users not found: {', '.join(sorted(missing))}")

        assignments = self._allocate(vendor_id, user_ids)
        return AssignmentResult(
            assigned=len(assignments),
            message="Benefits assigned successfully",
            assignments=assignments,
        )

    def _users_with_vendor_benefit(self, vendor_id: str) -> set:
        benefits = fetch_all(
            lambda: self.supabase.table("benefits").select("id").eq("vendor_id", vendor_id).order("id")
        )
        assignments = fetch_in(
            lambda: self.supabase.table("benefit_assignments").select("id, user_id").order("id"),
            "benefit_id", [b["id"] for b in benefits],
        )
        return {a["user_id"] for a in assignments}

    def assign_auto(self, vendor_id: str, role: str) -> AssignmentResult:
        """Give every user of the role who has nothing from this vendor one benefit"""
        self.get_vendor(vendor_id)
        try:
            users = fetch_all(
                lambda: self.supabase.table("profiles").select("id").eq("role", role).order("created_at").order("id")
            )
            already = self._users_with_vendor_benefit(vendor_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        targets = [u["id"] for u in users if u["id"] not in already]
        if not targets:
            return AssignmentResult(
                assigned=0,
                message="All users already have benefits from this vendor",
            )

        assignments = self._allocate(vendor_id, targets)
        return AssignmentResult(
            assigned=len(assignments),
            message=f"Benefits auto-assigned to {len(assignments)} {role}s",
            assignments=assignments,
        )

    def list_assignments(self, vendor_id: Optional[str] = None) -> List[MyBenefitResponse]:
        try:
            def build():
                return self.supabase.table("benefit_assignments").select("*").order("id")
            if vendor_id:
                benefit_ids = [
                    b["id"] for b in fetch_all(
                        lambda: self.supabase.table("benefits").select("id").eq("vendor_id", vendor_id).order("id")
                    )
                ]
                assignments = fetch_in(build, "benefit_id", benefit_ids)
            else:
                assignments = fetch_all(build)
            assignments.sort(key=lambda a: a.get("created_at") or "", reverse=True)
            return self._with_benefit_details(assignments)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Redemption

    def _with_benefit_details(self, assignments: List[Dict]) -> List[MyBenefitResponse]:
        if not assignments:
            return []
        benefits = fetch_in(
            lambda: self.supabase.table("benefits").select("*").order("id"),
            "id", list({a["benefit_id"] for a in assignments}),
        )
        benefits_by_id = {b["id"]: b for b in benefits}
        vendor_ids = list({b["vendor_id"] for b in benefits if b.get("vendor_id")})
        vendors_by_id = {}
        if vendor_ids:
            vendors = self.supabase.table("vendors")\
                .select("*")\
                .in_("id", vendor_ids)\
                .execute().data or []
            vendors_by_id = {v["id"]: v for v in vendors}

        response = []
        for assignment in assignments:
            benefit = benefits_by_id.get(assignment["benefit_id"])
            vendor = vendors_by_id.get(benefit.get("vendor_id")) if benefit else None
            response.append(MyBenefitResponse(
                **assignment,
                benefit=BenefitResponse(**benefit) if benefit else None,
                vendor=VendorResponse(**vendor) if vendor else None,
            ))
        return response

    def list_my_benefits(self, user_id: str) -> List[MyBenefitResponse]:
        try:
            assignments = self.supabase.table("benefit_assignments")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute().data or []
            return self._with_benefit_details(assignments)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def redeem(self, assignment_id: str, user_id: str) -> AssignmentResponse:
        """Mark the caller's assignment redeemed; redeeming twice keeps the first timestamp"""
        try:
            result = self.supabase.table("benefit_assignments")\
                .select("*")\
                .eq("id", assignment_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Benefit assignment not found")
            assignment = result.data[0]
            if assignment.get("is_redeemed"):
                return AssignmentResponse(**assignment)

            updated = self.supabase.table("benefit_assignments")\
                .update({"is_redeemed": True, "redeemed_at": _now()})\
                .eq("id", assignment_id)\
                .eq("user_id", user_id)\
                .execute()
            if not updated.data:
                raise HTTPException(status_code=404, detail="Benefit assignment not found")
            logger.info(f"Assignment {assignment_id} redeemed by {user_id}")
            return AssignmentResponse(**updated.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
