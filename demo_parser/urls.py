from django.urls import path

from .views import health, parse

urlpatterns = [
    path("health", health, name="health"),
    path("parse", parse, name="parse"),
]
