from pydantic import BaseModel, Field, HttpUrl, field_validator
from portal.modules.events.schemas import StackResponse
from typing import List, Literal, Optional
from datetime import datetime

LegalDocumentType = Literal["terms", "privacy"]


# News

class NewsMetaInfo(BaseModel):
    tags: List[str] = []
    category: Optional[str] = None


class NewsCreate(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    meta_info: Optional[NewsMetaInfo] = None
    published_at: Optional[datetime] = None


class NewsUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    meta_info: Optional[NewsMetaInfo] = None
    published_at: Optional[datetime] = None


class NewsResponse(BaseModel):
    id: str
    title: str
    content: str
    meta_info: Optional[dict] = None
    published_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Legal documents

class LegalDocumentCreate(BaseModel):
    type: LegalDocumentType
    content: str = Field(min_length=1)
    version: Optional[str] = Field(default=None, description="Defaults to 1.0.0 or the next patch version")


class LegalDocumentUpdate(BaseModel):
    content: str = Field(min_length=1)


class LegalDocumentResponse(BaseModel):
    id: str
    type: str
    content: str
    version: str
    is_published: Optional[bool] = False
    published_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Public pages

class HomePageSettings(BaseModel):
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    hero_image_url: Optional[HttpUrl] = None

    @field_validator("hero_image_url", mode="before")
    @classmethod
    def blank_image(cls, value):
        return value or None


class ContactSettings(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    additional_info: Optional[str] = None


class PartnerCreate(BaseModel):
    name: str = Field(min_length=1)
    logo_url: HttpUrl
    website_url: Optional[HttpUrl] = None
    display_order: int = 0
    is_active: bool = True


class PartnerResponse(BaseModel):
    id: str
    name: str
    logo_url: str
    website_url: Optional[str] = None
    display_order: Optional[int] = 0
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicHomeResponse(BaseModel):
    settings: HomePageSettings
    partners: List[PartnerResponse] = []
    stacks: List[StackResponse] = []
