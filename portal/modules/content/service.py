from supabase import Client
from portal.modules.content.schemas import (
    NewsCreate, NewsUpdate, NewsResponse, LegalDocumentCreate, LegalDocumentResponse,
    HomePageSettings, ContactSettings, PartnerCreate, PartnerResponse, PublicHomeResponse
)
from portal.modules.content.versioning import (
    INITIAL_VERSION, latest_version, next_patch, parse_version
)
from portal.modules.events.service import StackService
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class NewsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_news(self) -> List[NewsResponse]:
        """All news items including drafts"""
        try:
            result = self.supabase.table("news")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [NewsResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_published(self, limit: Optional[int] = None) -> List[NewsResponse]:
        try:
            query = self.supabase.table("news")\
                .select("*")\
                .lte("published_at", _now())\
                .order("published_at", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return [NewsResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_news(self, news_id: str, published_only: bool = False) -> NewsResponse:
        try:
            query = self.supabase.table("news").select("*").eq("id", news_id)
            if published_only:
                query = query.lte("published_at", _now())
            result = query.limit(1).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="News item not found")
        return NewsResponse(**result.data[0])

    def create_news(self, news_data: NewsCreate, user_id: str) -> NewsResponse:
        try:
            result = self.supabase.table("news").insert({
                **news_data.model_dump(mode="json"),
                "created_by": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create news item")
            return NewsResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_news(self, news_id: str, news_data: NewsUpdate) -> NewsResponse:
        update_data = news_data.model_dump(mode="json", exclude_unset=True)
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("news")\
                .update(update_data)\
                .eq("id", news_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="News item not found")
            return NewsResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_news(self, news_id: str) -> bool:
        try:
            result = self.supabase.table("news")\
                .delete()\
                .eq("id", news_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="News item not found")
        return True


class LegalDocumentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_documents(self, doc_type: Optional[str] = None) -> List[LegalDocumentResponse]:
        try:
            query = self.supabase.table("legal_documents").select("*")
            if doc_type:
                query = query.eq("type", doc_type)
            rows = query.execute().data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self._sorted(rows)

    def list_published(self) -> List[LegalDocumentResponse]:
        try:
            rows = self.supabase.table("legal_documents")\
                .select("*")\
                .eq("is_published", True)\
                .execute().data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self._sorted(rows)

    def get_current(self, doc_type: str) -> LegalDocumentResponse:
        """Highest published version of a document type"""
        documents = [d for d in self.list_published() if d.type == doc_type]
        if not documents:
            raise HTTPException(status_code=404, detail="Document is not available")
        return documents[0]

    @staticmethod
    def _sorted(rows: List[Dict]) -> List[LegalDocumentResponse]:
        def key(row):
            try:
                return parse_version(row["version"])
            except ValueError:
                return (-1, -1, -1)
        return [LegalDocumentResponse(**row) for row in sorted(rows, key=key, reverse=True)]

    def _latest_version(self, doc_type: str) -> Optional[str]:
        rows = self.supabase.table("legal_documents")\
            .select("version")\
            .eq("type", doc_type)\
            .execute().data or []
        return latest_version(row["version"] for row in rows)

    def create_document(self, doc_data: LegalDocumentCreate, user_id: str) -> LegalDocumentResponse:
        """New version of a legal document; versions only move forward"""
        try:
            latest = self._latest_version(doc_data.type)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if doc_data.version is None:
            version = next_patch(latest) if latest else INITIAL_VERSION
        else:
            try:
                parse_version(doc_data.version)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            version = doc_data.version.strip()
            if latest and parse_version(version) <= parse_version(latest):
                raise HTTPException(
                    status_code=400,
                    detail=f"Version {version} must be greater than the current {latest}"
                )

        try:
            result = self.supabase.table("legal_documents").insert({
                "type": doc_data.type,
                "content": doc_data.content,
                "version": version,
                "is_published": False,
                "created_by": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create document")
            logger.info(f"Legal document {doc_data.type} {version} created")
            return LegalDocumentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update(self, doc_id: str, update_data: Dict) -> LegalDocumentResponse:
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("legal_documents")\
                .update(update_data)\
                .eq("id", doc_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Document not found")
            return LegalDocumentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_content(self, doc_id: str, content: str) -> LegalDocumentResponse:
        return self._update(doc_id, {"content": content})

    def publish(self, doc_id: str) -> LegalDocumentResponse:
        document = self._update(doc_id, {"is_published": True, "published_at": _now()})
        logger.info(f"Legal document {document.type} {document.version} published")
        return document


class PageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_single(self, table: str) -> Optional[Dict]:
        try:
            result = self.supabase.table(table).select("*").limit(1).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return result.data[0] if result.data else None

    def _upsert_single(self, table: str, values: Dict) -> Dict:
        """Update the table's only row, creating it on first save"""
        existing = self._get_single(table)
        values = {**values, "updated_at": _now()}
        try:
            if existing:
                result = self.supabase.table(table)\
                    .update(values)\
                    .eq("id", existing["id"])\
                    .execute()
            else:
                result = self.supabase.table(table).insert(values).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=f"Failed to save {table}")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_home_settings(self) -> HomePageSettings:
        return HomePageSettings(**(self._get_single("home_page_settings") or {}))

    def save_home_settings(self, data: HomePageSettings) -> HomePageSettings:
        return HomePageSettings(**self._upsert_single("home_page_settings", data.model_dump(mode="json")))

    def get_contact_settings(self) -> ContactSettings:
        return ContactSettings(**(self._get_single("contact_settings") or {}))

    def save_contact_settings(self, data: ContactSettings) -> ContactSettings:
        return ContactSettings(**self._upsert_single("contact_settings", data.model_dump(mode="json")))

    def list_partners(self, active_only: bool = True) -> List[PartnerResponse]:
        try:
            query = self.supabase.table("partners").select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("display_order").execute()
            return [PartnerResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_partner(self, partner_data: PartnerCreate) -> PartnerResponse:
        try:
            result = self.supabase.table("partners").insert(partner_data.model_dump(mode="json")).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create partner")
            return PartnerResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_partner(self, partner_id: str) -> bool:
        try:
            result = self.supabase.table("partners")\
                .delete()\
                .eq("id", partner_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Partner not found")
        return True

    def get_public_home(self) -> PublicHomeResponse:
        return PublicHomeResponse(
            settings=self.get_home_settings(),
            partners=self.list_partners(),
            stacks=StackService(self.supabase).list_stacks(enabled_only=True),
        )
