from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from portal.database.supabase_client import get_supabase
from portal.modules.benefits.schemas import (
    VendorCreate, VendorUpdate, VendorResponse, BenefitCreate, BenefitBulkCreate,
    BenefitUpdate, BenefitResponse, BenefitBatchResponse, AvailableCountResponse,
    ManualAssignRequest, AutoAssignRequest, AssignmentResponse, AssignmentResult,
    MyBenefitResponse
)
from portal.modules.benefits.service import BenefitService
from portal.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Literal, Optional

router = APIRouter(prefix="/benefits", tags=["benefits"])
vendor_router = APIRouter(prefix="/vendors", tags=["benefits"])


def get_benefit_service(supabase: Client = Depends(get_supabase)) -> BenefitService:
    return BenefitService(supabase)


@vendor_router.get("", response_model=List[VendorResponse])
async def list_vendors(
    profile: Dict = Depends(require_permission("benefits:read")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.list_vendors()


@vendor_router.post("", response_model=VendorResponse, status_code=201)
async def create_vendor(
    vendor_data: VendorCreate,
    profile: Dict = Depends(require_permission("benefits:create")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.create_vendor(vendor_data)


@vendor_router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor(
    vendor_id: str,
    profile: Dict = Depends(require_permission("benefits:read")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.get_vendor(vendor_id)


@vendor_router.put("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: str,
    vendor_data: VendorUpdate,
    profile: Dict = Depends(require_permission("benefits:update")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.update_vendor(vendor_id, vendor_data)


@vendor_router.delete("/{vendor_id}", status_code=204)
async def delete_vendor(
    vendor_id: str,
    profile: Dict = Depends(require_permission("benefits:delete")),
    service: BenefitService = Depends(get_benefit_service)
):
    service.delete_vendor(vendor_id)
    return None


@router.get("", response_model=List[BenefitResponse])
async def list_benefits(
    vendor_id: Optional[str] = None,
    is_assigned: Optional[bool] = None,
    order: Literal["newest", "allocation"] = "newest",
    profile: Dict = Depends(require_permission("benefits:read")),
    service: BenefitService = Depends(get_benefit_service)
):
    """
    List benefits, newest first.

    Assignment hands out the oldest available benefit first; pass
    order=allocation to list benefits in that order.
    """
    return service.list_benefits(vendor_id=vendor_id, is_assigned=is_assigned, order=order)


@router.post("", response_model=BenefitResponse, status_code=201)
async def create_benefit(
    benefit_data: BenefitCreate,
    profile: Dict = Depends(require_permission("benefits:create")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.create_benefit(benefit_data)


@router.post("/bulk", response_model=BenefitBatchResponse, status_code=201)
async def create_bulk(
    bulk_data: BenefitBulkCreate,
    profile: Dict = Depends(require_permission("benefits:create")),
    service: BenefitService = Depends(get_benefit_service)
):
    """Create one benefit per line of coupon codes"""
    return service.create_bulk(bulk_data)


@router.post("/upload", response_model=BenefitBatchResponse, status_code=201)
async def upload_benefits(
    file: UploadFile = File(...),
    profile: Dict = Depends(require_permission("benefits:create")),
    service: BenefitService = Depends(get_benefit_service)
):
    """Import benefits from a CSV sheet"""
    content = await file.read()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")
    return service.create_from_csv(text)


@router.get("/available", response_model=AvailableCountResponse)
async def count_available(
    vendor_id: Optional[str] = None,
    profile: Dict = Depends(require_permission("benefits:read")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.count_available(vendor_id)


@router.get("/assignments", response_model=List[MyBenefitResponse])
async def list_assignments(
    vendor_id: Optional[str] = None,
    profile: Dict = Depends(require_permission("benefits:read")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.list_assignments(vendor_id)


@router.post("/assignments/manual", response_model=AssignmentResult, status_code=201)
async def assign_manual(
    body: ManualAssignRequest,
    profile: Dict = Depends(require_permission("benefits:assign")),
    service: BenefitService = Depends(get_benefit_service)
):
    """Assign one benefit of the vendor to each selected user"""
    return service.assign_manual(body.vendor_id, body.user_ids)


@router.post("/assignments/auto", response_model=AssignmentResult)
async def assign_auto(
    body: AutoAssignRequest,
    profile: Dict = Depends(require_permission("benefits:assign")),
    service: BenefitService = Depends(get_benefit_service)
):
    """Assign the vendor's benefits to every user of a role still without one"""
    return service.assign_auto(body.vendor_id, body.role)


@router.get("/me", response_model=List[MyBenefitResponse])
async def list_my_benefits(
    profile: Dict = Depends(require_permission("benefits:redeem")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.list_my_benefits(profile["id"])


@router.post("/me/{assignment_id}/redeem", response_model=AssignmentResponse)
async def redeem_benefit(
    assignment_id: str,
    profile: Dict = Depends(require_permission("benefits:redeem")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.redeem(assignment_id, profile["id"])


@router.put("/{benefit_id}", response_model=BenefitResponse)
async def update_benefit(
    benefit_id: str,
    benefit_data: BenefitUpdate,
    profile: Dict = Depends(require_permission("benefits:update")),
    service: BenefitService = Depends(get_benefit_service)
):
    return service.update_benefit(benefit_id, benefit_data)


@router.delete("/{benefit_id}", status_code=204)
async def delete_benefit(
    benefit_id: str,
    profile: Dict = Depends(require_permission("benefits:delete")),
    service: BenefitService = Depends(get_benefit_service)
):
    service.delete_benefit(benefit_id)
    return None
