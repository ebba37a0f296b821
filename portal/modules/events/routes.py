from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from portal.database.supabase_client import get_supabase
from portal.modules.events.schemas import (
    EventCreate, EventUpdate, EventResponse, GalleryImageCreate, GalleryImageUpdate,
    GalleryImageResponse, StackCreate, StackUpdate, StackToggle, StackResponse, split_tags
)
from portal.modules.events.service import EventService, GalleryService, StackService
from portal.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Optional
from datetime import date

router = APIRouter(prefix="/events", tags=["events"])
gallery_router = APIRouter(prefix="/gallery", tags=["gallery"])
stack_router = APIRouter(prefix="/stacks", tags=["stacks"])

MAX_IMAGE_BYTES = 10 * 1024 * 1024


def get_event_service(supabase: Client = Depends(get_supabase)) -> EventService:
    return EventService(supabase)


def get_gallery_service(supabase: Client = Depends(get_supabase)) -> GalleryService:
    return GalleryService(supabase)


def get_stack_service(supabase: Client = Depends(get_supabase)) -> StackService:
    return StackService(supabase)


# Events

@router.get("", response_model=List[EventResponse])
async def list_events(
    day: Optional[date] = Query(default=None, alias="date", description="Only events starting on this day (YYYY-MM-DD)"),
    service: EventService = Depends(get_event_service)
):
    return service.list_events(day)


@router.get("/upcoming", response_model=List[EventResponse])
async def list_upcoming(
    limit: int = Query(default=3, ge=1, le=50),
    service: EventService = Depends(get_event_service)
):
    return service.list_upcoming(limit)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    return service.get_event(event_id)


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    event_data: EventCreate,
    profile: Dict = Depends(require_permission("events:create")),
    service: EventService = Depends(get_event_service)
):
    return service.create_event(event_data, profile["id"])


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    profile: Dict = Depends(require_permission("events:update")),
    service: EventService = Depends(get_event_service)
):
    return service.update_event(event_id, event_data)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    profile: Dict = Depends(require_permission("events:delete")),
    service: EventService = Depends(get_event_service)
):
    service.delete_event(event_id)
    return None


# Gallery

@gallery_router.get("", response_model=List[GalleryImageResponse])
async def list_gallery(
    event_id: Optional[str] = None,
    service: GalleryService = Depends(get_gallery_service)
):
    return service.list_images(event_id)


@gallery_router.post("", response_model=GalleryImageResponse, status_code=201)
async def add_gallery_image(
    image_data: GalleryImageCreate,
    profile: Dict = Depends(require_permission("events:create")),
    service: GalleryService = Depends(get_gallery_service)
):
    """Add an image by URL"""
    return service.add_image(image_data)


@gallery_router.post("/upload", response_model=GalleryImageResponse, status_code=201)
async def upload_gallery_image(
    file: UploadFile = File(...),
    description: Optional[str] = Form(default=None),
    tags: Optional[str] = Form(default=None),
    event_id: Optional[str] = Form(default=None),
    profile: Dict = Depends(require_permission("events:create")),
    service: GalleryService = Depends(get_gallery_service)
):
    """Upload an image file to the gallery bucket"""
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are accepted")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=400, detail="Image is too large")
    return service.upload_image(
        file.filename or "image", content, file.content_type,
        description=description, tags=split_tags(tags), event_id=event_id or None
    )


@gallery_router.put("/{image_id}", response_model=GalleryImageResponse)
async def update_gallery_image(
    image_id: str,
    image_data: GalleryImageUpdate,
    profile: Dict = Depends(require_permission("events:update")),
    service: GalleryService = Depends(get_gallery_service)
):
    return service.update_image(image_id, image_data)


@gallery_router.delete("/{image_id}", status_code=204)
async def delete_gallery_image(
    image_id: str,
    profile: Dict = Depends(require_permission("events:delete")),
    service: GalleryService = Depends(get_gallery_service)
):
    service.delete_image(image_id)
    return None


# Technology stacks

@stack_router.get("", response_model=List[StackResponse])
async def list_enabled_stacks(service: StackService = Depends(get_stack_service)):
    """Enabled stacks, for team and mentor forms"""
    return service.list_stacks(enabled_only=True)


@stack_router.get("/all", response_model=List[StackResponse])
async def list_all_stacks(
    profile: Dict = Depends(require_permission("events:update")),
    service: StackService = Depends(get_stack_service)
):
    return service.list_stacks()


@stack_router.post("", response_model=StackResponse, status_code=201)
async def create_stack(
    stack_data: StackCreate,
    profile: Dict = Depends(require_permission("events:create")),
    service: StackService = Depends(get_stack_service)
):
    return service.create_stack(stack_data)


@stack_router.put("/{stack_id}", response_model=StackResponse)
async def update_stack(
    stack_id: str,
    stack_data: StackUpdate,
    profile: Dict = Depends(require_permission("events:update")),
    service: StackService = Depends(get_stack_service)
):
    return service.update_stack(stack_id, stack_data)


@stack_router.put("/{stack_id}/enabled", response_model=StackResponse)
async def set_stack_enabled(
    stack_id: str,
    body: StackToggle,
    profile: Dict = Depends(require_permission("events:update")),
    service: StackService = Depends(get_stack_service)
):
    return service.set_enabled(stack_id, body.is_enabled)


@stack_router.delete("/{stack_id}", status_code=204)
async def delete_stack(
    stack_id: str,
    profile: Dict = Depends(require_permission("events:delete")),
    service: StackService = Depends(get_stack_service)
):
    service.delete_stack(stack_id)
    return None
