from django.contrib import admin
from django.urls import path, include

from rostering.api.v1.urls import urlpatterns as api_urls

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include((api_urls, "api"))),
]

handler404 = "core.views.error_404"
handler500 = "core.views.error_500"
