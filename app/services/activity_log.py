# app/services/activity_log.py
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.admin_activity_log import AdminActivityLog


class ActivityLogService:
    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        admin_user_id: str,
        action_type: str,
        resource_type: str,
        resource_id,
        details: Optional[Dict[str, Any]] = None,
    ) -> AdminActivityLog:
        """Stage an audit entry. The caller's commit persists it with the change."""
        entry = AdminActivityLog(
            admin_user_id=admin_user_id,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=details or {},
        )
        self.db.add(entry)
        return entry

    def get_entries(
        self,
        page: int = 1,
        size: int = 50,
        resource_type: Optional[str] = None,
    ) -> Tuple[List[AdminActivityLog], dict]:
        query = self.db.query(AdminActivityLog)
        if resource_type:
            query = query.filter(AdminActivityLog.resource_type == resource_type.upper())

        total = query.count()
        entries = (
            query.order_by(AdminActivityLog.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": math.ceil(total / size) if size > 0 else 0,
        }
        return entries, pagination
