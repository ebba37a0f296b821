from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator
from typing import List, Optional, Union
from datetime import datetime, timezone


def as_utc(value: Union[str, datetime]) -> datetime:
    """Timezone-aware datetime; naive values are taken as UTC"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def split_tags(value: Union[str, List[str], None]) -> Optional[List[str]]:
    """Accept either a list or a comma separated string of tags"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    return [tag.strip() for tag in value if tag and tag.strip()]


# Events

class EventMetaInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    location: Optional[str] = None
    maxParticipants: Optional[int] = Field(default=None, ge=1)


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    meta_info: Optional[EventMetaInfo] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time < self.start_time:
            raise ValueError("End time must not be before start time")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    meta_info: Optional[EventMetaInfo] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, value: Optional[datetime]) -> datetime:
        if value is None:
            raise ValueError("Start and end times cannot be cleared")
        return as_utc(value)


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    meta_info: Optional[dict] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Gallery

class GalleryImageCreate(BaseModel):
    image_url: HttpUrl
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    event_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return split_tags(value)


class GalleryImageUpdate(BaseModel):
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    event_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return split_tags(value)


class GalleryImageResponse(BaseModel):
    id: str
    image_url: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    event_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Technology stacks

class StackCreate(BaseModel):
    name: str = Field(min_length=1)
    icon: Optional[HttpUrl] = None
    is_enabled: bool = True


class StackUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[HttpUrl] = None


class StackToggle(BaseModel):
    is_enabled: bool


class StackResponse(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    is_enabled: Optional[bool] = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
