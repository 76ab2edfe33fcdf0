from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # Bodega: vales, Sala L, stock y kardex
    path("", include("bodega.urls")),
]
