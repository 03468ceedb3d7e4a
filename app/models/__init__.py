"""
Models package initialization
Import all models and setup relationships
"""

from .admin_activity_log import AdminActivityLog
from .cart_item import CartItem
from .course import Course
from .course_access import CourseAccess
from .course_video import CourseVideo
from .order import Order, OrderItem
from .profile import Profile
from .purchase import Purchase

# Import and setup relationships
from .relations import setup_relationships
from .stripe import StripeCustomer, StripePaymentMethod, StripeWebhookLog

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "AdminActivityLog",
    "CartItem",
    "Course",
    "CourseAccess",
    "CourseVideo",
    "Order",
    "OrderItem",
    "Profile",
    "Purchase",
    "StripeCustomer",
    "StripePaymentMethod",
    "StripeWebhookLog",
]
