from fastapi import APIRouter, Depends, Query
from portal.database.supabase_client import get_supabase
from portal.modules.content.schemas import (
    NewsCreate, NewsUpdate, NewsResponse, LegalDocumentCreate, LegalDocumentUpdate,
    LegalDocumentResponse, LegalDocumentType, HomePageSettings, ContactSettings,
    PartnerCreate, PartnerResponse, PublicHomeResponse
)
from portal.modules.content.service import NewsService, LegalDocumentService, PageService
from portal.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/news", tags=["content"])
legal_router = APIRouter(prefix="/legal", tags=["content"])
pages_router = APIRouter(prefix="/pages", tags=["content"])
public_router = APIRouter(prefix="/public", tags=["public"])


def get_news_service(supabase: Client = Depends(get_supabase)) -> NewsService:
    return NewsService(supabase)


def get_legal_service(supabase: Client = Depends(get_supabase)) -> LegalDocumentService:
    return LegalDocumentService(supabase)


def get_page_service(supabase: Client = Depends(get_supabase)) -> PageService:
    return PageService(supabase)


# News

@router.get("", response_model=List[NewsResponse])
async def list_published_news(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    service: NewsService = Depends(get_news_service)
):
    """Published news, newest first"""
    return service.list_published(limit)


@router.get("/all", response_model=List[NewsResponse])
async def list_all_news(
    profile: Dict = Depends(require_permission("content:update")),
    service: NewsService = Depends(get_news_service)
):
    return service.list_news()


@router.get("/{news_id}", response_model=NewsResponse)
async def get_news(news_id: str, service: NewsService = Depends(get_news_service)):
    return service.get_news(news_id, published_only=True)


@router.post("", response_model=NewsResponse, status_code=201)
async def create_news(
    news_data: NewsCreate,
    profile: Dict = Depends(require_permission("content:create")),
    service: NewsService = Depends(get_news_service)
):
    return service.create_news(news_data, profile["id"])


@router.put("/{news_id}", response_model=NewsResponse)
async def update_news(
    news_id: str,
    news_data: NewsUpdate,
    profile: Dict = Depends(require_permission("content:update")),
    service: NewsService = Depends(get_news_service)
):
    return service.update_news(news_id, news_data)


@router.delete("/{news_id}", status_code=204)
async def delete_news(
    news_id: str,
    profile: Dict = Depends(require_permission("content:delete")),
    service: NewsService = Depends(get_news_service)
):
    service.delete_news(news_id)
    return None


# Legal documents

@legal_router.get("", response_model=List[LegalDocumentResponse])
async def list_published_documents(service: LegalDocumentService = Depends(get_legal_service)):
    """Published legal documents, highest version first"""
    return service.list_published()


@legal_router.get("/all", response_model=List[LegalDocumentResponse])
async def list_documents(
    type: Optional[LegalDocumentType] = None,
    profile: Dict = Depends(require_permission("content:publish")),
    service: LegalDocumentService = Depends(get_legal_service)
):
    return service.list_documents(type)


@legal_router.get("/current/{doc_type}", response_model=LegalDocumentResponse)
async def get_current_document(
    doc_type: LegalDocumentType,
    service: LegalDocumentService = Depends(get_legal_service)
):
    return service.get_current(doc_type)


@legal_router.post("", response_model=LegalDocumentResponse, status_code=201)
async def create_document(
    doc_data: LegalDocumentCreate,
    profile: Dict = Depends(require_permission("content:publish")),
    service: LegalDocumentService = Depends(get_legal_service)
):
    return service.create_document(doc_data, profile["id"])


@legal_router.put("/{doc_id}", response_model=LegalDocumentResponse)
async def update_document(
    doc_id: str,
    doc_data: LegalDocumentUpdate,
    profile: Dict = Depends(require_permission("content:publish")),
    service: LegalDocumentService = Depends(get_legal_service)
):
    return service.update_content(doc_id, doc_data.content)


@legal_router.post("/{doc_id}/publish", response_model=LegalDocumentResponse)
async def publish_document(
    doc_id: str,
    profile: Dict = Depends(require_permission("content:publish")),
    service: LegalDocumentService = Depends(get_legal_service)
):
    return service.publish(doc_id)


# Public pages

@pages_router.get("/home", response_model=HomePageSettings)
async def get_home_settings(service: PageService = Depends(get_page_service)):
    return service.get_home_settings()


@pages_router.put("/home", response_model=HomePageSettings)
async def save_home_settings(
    data: HomePageSettings,
    profile: Dict = Depends(require_permission("content:pages")),
    service: PageService = Depends(get_page_service)
):
    return service.save_home_settings(data)


@pages_router.get("/contact", response_model=ContactSettings)
async def get_contact_settings(service: PageService = Depends(get_page_service)):
    return service.get_contact_settings()


@pages_router.put("/contact", response_model=ContactSettings)
async def save_contact_settings(
    data: ContactSettings,
    profile: Dict = Depends(require_permission("content:pages")),
    service: PageService = Depends(get_page_service)
):
    return service.save_contact_settings(data)


@pages_router.get("/partners", response_model=List[PartnerResponse])
async def list_partners(service: PageService = Depends(get_page_service)):
    return service.list_partners()


@pages_router.post("/partners", response_model=PartnerResponse, status_code=201)
async def create_partner(
    partner_data: PartnerCreate,
    profile: Dict = Depends(require_permission("content:pages")),
    service: PageService = Depends(get_page_service)
):
    return service.create_partner(partner_data)


@pages_router.delete("/partners/{partner_id}", status_code=204)
async def delete_partner(
    partner_id: str,
    profile: Dict = Depends(require_permission("content:pages")),
    service: PageService = Depends(get_page_service)
):
    service.delete_partner(partner_id)
    return None


@public_router.get("/home", response_model=PublicHomeResponse)
async def get_public_home(service: PageService = Depends(get_page_service)):
    """Landing page data: hero settings, partners and enabled stacks"""
    return service.get_public_home()
