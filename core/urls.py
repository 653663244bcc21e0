from django.urls import include, path

urlpatterns = [
    path("", include("apps.pages.urls")),
]

handler404 = "apps.pages.views.page_not_found"
