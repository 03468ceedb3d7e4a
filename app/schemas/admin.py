# app/schemas/admin.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class RecentOrder(BaseModel):
    id: int
    user_email: Optional[str] = None
    total_amount: int
    status: str
    created_at: datetime


class RecentUser(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    created_at: datetime


class DashboardStatsResponse(BaseModel):
    total_users: int
    total_courses: int
    total_orders: int
    total_revenue: int
    recent_orders: List[RecentOrder]
    recent_users: List[RecentUser]


class ActivityLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    admin_user_id: str
    action_type: str
    resource_type: str
    resource_id: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


class ActivityLogListResponse(BaseModel):
    entries: List[ActivityLogResponse]
    total: int
    page: int
    size: int
    total_pages: int


class ConfigurationStatusResponse(BaseModel):
    database: bool
    stripe_secret_key: bool
    stripe_publishable_key: bool
    stripe_webhook_secret: bool
    s3_credentials: bool
    s3_bucket: str
    s3_region: str
    base_url: str
