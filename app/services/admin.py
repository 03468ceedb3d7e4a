# app/services/admin.py
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError, db_exception
from app.models.course import Course
from app.models.course_access import CourseAccess
from app.models.order import Order, OrderItem
from app.models.profile import Profile
from app.schemas.access import CourseAccessGrant
from app.services.activity_log import ActivityLogService
from app.services.profile import ProfileService

logger = logging.getLogger(__name__)

ORDER_SORT_FIELDS = {
    "created_at": Order.created_at,
    "total_amount": Order.total_amount,
    "status": Order.status,
}


def _admin_order(order: Order) -> dict:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "status": order.status,
        "stripe_payment_intent_id": order.stripe_payment_intent_id,
        "stripe_customer_id": order.stripe_customer_id,
        "stripe_charge_id": order.stripe_charge_id,
        "created_at": order.created_at,
        "completed_at": order.completed_at,
        "items": order.items,
        "user_email": order.user.email if order.user else None,
        "user_full_name": order.user.full_name if order.user else None,
    }


class AdminService:
    def __init__(self, db: Session):
        self.db = db
        self.activity = ActivityLogService(db)

    @db_exception
    def get_dashboard_stats(self) -> dict:
        total_users = self.db.query(func.count(Profile.id)).scalar() or 0
        total_courses = self.db.query(func.count(Course.id)).scalar() or 0
        total_orders = self.db.query(func.count(Order.id)).scalar() or 0
        total_revenue = (
            self.db.query(func.coalesce(func.sum(Order.total_amount), 0))
            .filter(Order.status == "completed")
            .scalar()
        )

        recent_orders = (
            self.db.query(Order)
            .options(selectinload(Order.user))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(5)
            .all()
        )
        recent_users = (
            self.db.query(Profile)
            .order_by(Profile.created_at.desc())
            .limit(5)
            .all()
        )

        return {
            "total_users": total_users,
            "total_courses": total_courses,
            "total_orders": total_orders,
            "total_revenue": int(total_revenue or 0),
            "recent_orders": [
                {
                    "id": o.id,
                    "user_email": o.user.email if o.user else None,
                    "total_amount": o.total_amount,
                    "status": o.status,
                    "created_at": o.created_at,
                }
                for o in recent_orders
            ],
            "recent_users": [
                {
                    "id": p.id,
                    "email": p.email,
                    "full_name": p.full_name,
                    "created_at": p.created_at,
                }
                for p in recent_users
            ],
        }

    # ==================== Orders ====================

    @db_exception
    def get_orders(
        self,
        page: int = 1,
        size: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[dict], dict]:
        """Orders across all users with status filter, search and sorting"""
        query = self.db.query(Order).join(Profile, Profile.id == Order.user_id)

        if status:
            query = query.filter(Order.status == status)

        if search:
            search_pattern = f"%{search}%"
            matching_orders = (
                self.db.query(OrderItem.order_id)
                .filter(OrderItem.course_title.ilike(search_pattern))
            )
            conditions = [
                Profile.email.ilike(search_pattern),
                Order.id.in_(matching_orders),
            ]
            if search.isdigit():
                conditions.append(Order.id == int(search))
            query = query.filter(or_(*conditions))

        column = ORDER_SORT_FIELDS.get(sort_by)
        if column is None:
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR, f"Cannot sort orders by {sort_by}"
            )
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = query.count()
        orders = (
            query.options(selectinload(Order.items), selectinload(Order.user))
            .order_by(ordering, Order.id.desc())
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
        return [_admin_order(o) for o in orders], pagination

    def _get_order(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise ServiceError(ErrorCode.NOT_FOUND, "Order not found", 404)
        return order

    @db_exception
    def get_order(self, order_id: int) -> dict:
        return _admin_order(self._get_order(order_id))

    @db_exception
    def update_order_status(self, order_id: int, status: str, admin_id: str) -> dict:
        order = self._get_order(order_id)
        previous = order.status

        order.status = status
        if status == "completed" and order.completed_at is None:
            order.completed_at = datetime.now(timezone.utc)

        self.activity.log(
            admin_id,
            "UPDATE",
            "ORDER",
            order.id,
            {"status": status, "previous_status": previous},
        )
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} status {previous} -> {status} by {admin_id}")
        return _admin_order(order)

    # ==================== Users ====================

    def change_role(self, profile_id: str, role: str, admin: Profile) -> Profile:
        if profile_id == admin.id:
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR, "You cannot change your own role"
            )
        self.activity.log(admin.id, "UPDATE", "USER", profile_id, {"role": role})
        return ProfileService(self.db).set_role(profile_id, role)

    @db_exception
    def grant_access(self, grant: CourseAccessGrant, admin_id: str) -> CourseAccess:
        ProfileService(self.db).get_profile_or_404(grant.user_id)
        if not self.db.query(Course.id).filter(Course.id == grant.course_id).first():
            raise ServiceError(ErrorCode.NOT_FOUND, "Course not found", 404)

        inserted = insert_or_ignore(
            self.db,
            CourseAccess,
            {
                "user_id": grant.user_id,
                "course_id": grant.course_id,
                "access_type": grant.access_type,
                "expires_at": grant.expires_at,
            },
            ["user_id", "course_id"],
        )
        access = (
            self.db.query(CourseAccess)
            .filter(
                CourseAccess.user_id == grant.user_id,
                CourseAccess.course_id == grant.course_id,
            )
            .one()
        )
        if not inserted:
            access.access_type = grant.access_type
            access.expires_at = grant.expires_at

        self.activity.log(
            admin_id,
            "CREATE" if inserted else "UPDATE",
            "ACCESS",
            access.id,
            {
                "user_id": grant.user_id,
                "course_id": grant.course_id,
                "access_type": grant.access_type,
            },
        )
        self.db.commit()
        self.db.refresh(access)
        return access

    @db_exception
    def revoke_access(self, user_id: str, course_id: int, admin_id: str) -> bool:
        access = (
            self.db.query(CourseAccess)
            .filter(CourseAccess.user_id == user_id, CourseAccess.course_id == course_id)
            .first()
        )
        if not access:
            raise ServiceError(ErrorCode.NOT_FOUND, "Access grant not found", 404)

        self.activity.log(
            admin_id,
            "DELETE",
            "ACCESS",
            access.id,
            {"user_id": user_id, "course_id": course_id},
        )
        self.db.delete(access)
        self.db.commit()
        return True


def get_configuration_status() -> dict:
    return {
        "database": bool(settings.sqlalchemy_database_url),
        "stripe_secret_key": bool(settings.stripe_secret_key),
        "stripe_publishable_key": bool(settings.stripe_publishable_key),
        "stripe_webhook_secret": bool(settings.stripe_webhook_secret),
        "s3_credentials": bool(settings.s3_access_key and settings.s3_secret_key),
        "s3_bucket": settings.s3_bucket,
        "s3_region": settings.s3_region,
        "base_url": settings.base_url,
    }
