from pydantic import BaseModel, Field, HttpUrl, field_validator
from typing import List, Literal, Optional
from datetime import date, datetime

UserType = Literal["all", "mentor", "participant"]


# Vendors

class VendorCreate(BaseModel):
    name: str = Field(min_length=1)
    website: HttpUrl
    icon: HttpUrl
    redemption_instructions: str = Field(min_length=1)


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    website: Optional[HttpUrl] = None
    icon: Optional[HttpUrl] = None
    redemption_instructions: Optional[str] = Field(default=None, min_length=1)


class VendorResponse(BaseModel):
    id: str
    name: str
    website: Optional[str] = None
    icon: Optional[str] = None
    redemption_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Benefits

class BenefitCreate(BaseModel):
    vendor_id: str
    coupon_code: str = Field(min_length=1)
    provider_name: Optional[str] = None
    provider_website: Optional[HttpUrl] = None
    redemption_instructions: Optional[str] = None
    expiry_date: Optional[date] = None
    user_type: UserType = "all"


class BenefitBulkCreate(BaseModel):
    vendor_id: str
    coupon_codes: str = Field(min_length=1, description="One coupon code per line")
    expiry_date: Optional[date] = None
    user_type: UserType = "all"
    is_active: bool = True

    def codes(self) -> List[str]:
        return [line.strip() for line in self.coupon_codes.splitlines() if line.strip()]


class BenefitUpdate(BaseModel):
    vendor_id: Optional[str] = None
    coupon_code: Optional[str] = Field(default=None, min_length=1)
    provider_name: Optional[str] = None
    provider_website: Optional[HttpUrl] = None
    redemption_instructions: Optional[str] = None
    expiry_date: Optional[date] = None
    user_type: Optional[UserType] = None
    is_active: Optional[bool] = None


class BenefitResponse(BaseModel):
    id: str
    vendor_id: Optional[str] = None
    coupon_code: str
    provider_name: Optional[str] = None
    provider_website: Optional[str] = None
    redemption_instructions: Optional[str] = None
    expiry_date: Optional[date] = None
    user_type: Optional[str] = None
    is_active: Optional[bool] = None
    is_assigned: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BenefitBatchResponse(BaseModel):
    created: int
    benefits: List[BenefitResponse] = []


class AvailableCountResponse(BaseModel):
    vendor_id: Optional[str] = None
    available: int


# Assignments

class ManualAssignRequest(BaseModel):
    vendor_id: str
    user_ids: List[str] = Field(min_length=1)

    @field_validator("user_ids")
    @classmethod
    def dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


class AutoAssignRequest(BaseModel):
    vendor_id: str
    role: Literal["mentor", "participant"]


class AssignmentResponse(BaseModel):
    id: str
    user_id: str
    benefit_id: str
    is_redeemed: Optional[bool] = False
    redeemed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignmentResult(BaseModel):
    assigned: int
    message: str
    assignments: List[AssignmentResponse] = []


class MyBenefitResponse(AssignmentResponse):
    benefit: Optional[BenefitResponse] = None
    vendor: Optional[VendorResponse] = None
