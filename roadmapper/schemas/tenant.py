"""
Tenant Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Dict
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel


class PlanTier(str, enum.Enum):
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class TenantRecord(ColumnModel):
    domain_name: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9.-]+$")
    plan_tier: PlanTier = PlanTier.BASIC


class TenantPlanUpdate(ChangesModel):
    plan_tier: PlanTier


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    domain_name: str
    plan_tier: PlanTier
    created_at: datetime
    updated_at: datetime


class TenantUsageResponse(BaseModel):
    """Row counts per entity for the current tenant."""
    tenant_id: str
    plan_tier: PlanTier
    counts: Dict[str, int]
