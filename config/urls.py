# config/urls.py
from django.contrib import admin
from django.urls import path

urlpatterns = [
    # Tenant administrators manage field schemas and auto-creation rules here.
    path("admin/", admin.site.urls),
]
