from supabase import Client
from portal.config import settings
from portal.database.supabase_client import public_storage_url
from portal.modules.events.schemas import (
    EventCreate, EventUpdate, EventResponse, GalleryImageCreate, GalleryImageUpdate,
    GalleryImageResponse, StackCreate, StackUpdate, StackResponse, as_utc
)
from typing import List, Optional
from fastapi import HTTPException
from datetime import date, datetime, time, timedelta, timezone
import uuid
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def day_bounds(day: date):
    """[start, end) of a UTC calendar day as ISO strings"""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start.isoformat(), (start + timedelta(days=1)).isoformat()


class EventService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_events(self, day: Optional[date] = None) -> List[EventResponse]:
        """All events ordered by start time, or only those starting on one day"""
        try:
            query = self.supabase.table("events").select("*")
            if day:
                start, end = day_bounds(day)
                query = query.gte("start_time", start).lt("start_time", end)
            result = query.order("start_time").execute()
            return [EventResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_upcoming(self, limit: int = 3) -> List[EventResponse]:
        try:
            result = self.supabase.table("events")\
                .select("*")\
                .gte("start_time", _now())\
                .order("start_time")\
                .limit(limit)\
                .execute()
            return [EventResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_event(self, event_id: str) -> EventResponse:
        try:
            result = self.supabase.table("events")\
                .select("*")\
                .eq("id", event_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Event not found")
        return EventResponse(**result.data[0])

    def create_event(self, event_data: EventCreate, user_id: str) -> EventResponse:
        try:
            result = self.supabase.table("events").insert({
                **event_data.model_dump(mode="json", exclude_none=True),
                "created_by": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create event")
            logger.info(f"Event {result.data[0]['id']} created by {user_id}")
            return EventResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_event(self, event_id: str, event_data: EventUpdate) -> EventResponse:
        current = self.get_event(event_id)
        start = event_data.start_time or current.start_time
        end = event_data.end_time or current.end_time
        if as_utc(end) < as_utc(start):
            raise HTTPException(status_code=400, detail="End time must not be before start time")

        update_data = event_data.model_dump(mode="json", exclude_unset=True)
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("events")\
                .update(update_data)\
                .eq("id", event_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Event not found")
            return EventResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_event(self, event_id: str) -> bool:
        try:
            result = self.supabase.table("events")\
                .delete()\
                .eq("id", event_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Event not found")
        return True


class GalleryService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_images(self, event_id: Optional[str] = None) -> List[GalleryImageResponse]:
        """Gallery images, newest first"""
        try:
            query = self.supabase.table("event_gallery").select("*")
            if event_id:
                query = query.eq("event_id", event_id)
            result = query.order("created_at", desc=True).execute()
            return [GalleryImageResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_image(self, image_data: GalleryImageCreate) -> GalleryImageResponse:
        data = image_data.model_dump(mode="json")
        data["tags"] = data.get("tags") or []
        try:
            result = self.supabase.table("event_gallery").insert(data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add image")
            return GalleryImageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def upload_image(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        event_id: Optional[str] = None
    ) -> GalleryImageResponse:
        """Store the file in the gallery bucket and record it"""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
        path = f"{uuid.uuid4().hex}.{ext}"
        bucket = settings.gallery_bucket
        try:
            self.supabase.storage.from_(bucket).upload(
                path, content, {"content-type": content_type or "application/octet-stream"}
            )
            url = public_storage_url(self.supabase, bucket, path)
        except Exception as e:
            logger.error(f"Gallery upload of {filename} failed: {e}")
            raise HTTPException(status_code=500, detail="Error uploading image")
        return self.add_image(GalleryImageCreate(
            image_url=url, description=description, tags=tags, event_id=event_id
        ))

    def update_image(self, image_id: str, image_data: GalleryImageUpdate) -> GalleryImageResponse:
        update_data = image_data.model_dump(exclude_unset=True)
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("event_gallery")\
                .update(update_data)\
                .eq("id", image_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Image not found")
            return GalleryImageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_image(self, image_id: str) -> bool:
        try:
            result = self.supabase.table("event_gallery")\
                .delete()\
                .eq("id", image_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Image not found")
        return True


class StackService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_stacks(self, enabled_only: bool = False) -> List[StackResponse]:
        try:
            query = self.supabase.table("technology_stacks").select("*")
            if enabled_only:
                query = query.eq("is_enabled", True)
            result = query.order("name").execute()
            return [StackResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_stack(self, stack_data: StackCreate) -> StackResponse:
        try:
            result = self.supabase.table("technology_stacks").insert(stack_data.model_dump(mode="json")).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create stack")
            return StackResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update(self, stack_id: str, update_data: dict) -> StackResponse:
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("technology_stacks")\
                .update(update_data)\
                .eq("id", stack_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Technology stack not found")
            return StackResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_stack(self, stack_id: str, stack_data: StackUpdate) -> StackResponse:
        return self._update(stack_id, stack_data.model_dump(mode="json", exclude_unset=True))

    def set_enabled(self, stack_id: str, is_enabled: bool) -> StackResponse:
        return self._update(stack_id, {"is_enabled": is_enabled})

    def delete_stack(self, stack_id: str) -> bool:
        try:
            result = self.supabase.table("technology_stacks")\
                .delete()\
                .eq("id", stack_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Technology stack not found")
        return True
