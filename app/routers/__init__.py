from .admin import router as admin_router
from .auth import router as auth_router
from .cart import router as cart_router
from .course import router as course_router
from .order import router as order_router
from .upload import router as upload_router
from .user import router as user_router
from .webhook import router as webhook_router

routes = [
    admin_router,
    auth_router,
    user_router,
    course_router,
    cart_router,
    order_router,
    webhook_router,
    upload_router,
]
