"""
URL configuration for restaurant_backend project.

Menu, table and inventory management live outside this service; only the
order lifecycle API and the token endpoints it relies on are routed here.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # The orders app registers its base endpoint as 'orders', so the final
    # path is /api/orders/.
    path("api/", include("orders.urls")),
]
