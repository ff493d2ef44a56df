"""
Pydantic models for services and provider company information.

The ``tree`` field of ``ServiceCreate``/``TreeUpdate`` is accepted as a
raw JSON object and checked by ``core.tree.validate_tree`` in the
service layer, so that structural problems are reported with the
violated rule and node id instead of a generic schema error.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .tree import CamelModel

ServiceStatus = Literal["draft", "active", "inactive"]


class ServiceDocument(BaseModel):
    name: str
    url: str
    type: Optional[str] = None


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, examples=["Broadband Internet Service"])
    description: Optional[str] = None
    service_type: Optional[str] = Field(None, alias="serviceType", examples=["broadband"])
    tree: Optional[Dict[str, Any]] = None
    diagram: Optional[str] = None
    documents: List[ServiceDocument] = Field(default_factory=list)
    status: ServiceStatus = "draft"

    model_config = {
        "populate_by_name": True,
    }


class ServiceUpdate(BaseModel):
    """Partial update of service metadata.

    The tree has its own endpoint (``PUT /provider/services/{id}/tree``)
    and is replaced wholesale there.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    service_type: Optional[str] = Field(None, alias="serviceType")
    diagram: Optional[str] = None
    documents: Optional[List[ServiceDocument]] = None
    status: Optional[ServiceStatus] = None

    model_config = {
        "populate_by_name": True,
    }


class TreeUpdate(BaseModel):
    tree: Dict[str, Any]
    diagram: Optional[str] = None


class ServiceSummary(CamelModel):
    id: int
    name: str
    provider: Optional[str] = None
    description: Optional[str] = None
    service_type: Optional[str] = None
    status: str
    users_count: int = 0
    revenue: float = 0
    created_at: Optional[datetime] = None


class ServiceRead(ServiceSummary):
    provider_id: int
    tree: Optional[Dict[str, Any]] = None
    diagram: Optional[str] = None
    documents: List[ServiceDocument] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class CompanyInfo(BaseModel):
    id: int
    company_name: str = Field(..., alias="companyName")
    website: Optional[str] = None
    business_license: Optional[str] = Field(None, alias="businessLicense")
    service_types: List[str] = Field(default_factory=list, alias="serviceTypes")
    description: Optional[str] = None
    logo_url: Optional[str] = Field(None, alias="logoUrl")

    model_config = {
        "populate_by_name": True,
    }


class CompanyInfoUpdate(BaseModel):
    company_name: str = Field("", alias="companyName")
    website: str = ""
    business_license: str = Field("", alias="businessLicense")
    service_types: List[str] = Field(default_factory=list, alias="serviceTypes")
    description: str = ""
    logo_url: str = Field("", alias="logoUrl")

    model_config = {
        "populate_by_name": True,
    }
