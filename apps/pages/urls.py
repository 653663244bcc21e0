from django.urls import path

from . import views

urlpatterns = [
    path("", views.HomePageView.as_view(), name="home"),
    path("reset/", views.ResetUploadView.as_view(), name="reset-upload"),
    path("theme/toggle/", views.ThemeToggleView.as_view(), name="toggle-theme"),
]
