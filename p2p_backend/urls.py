from django.http import JsonResponse
from django.urls import path, include


def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("healthz", health_check),
    path("api/", include("lending.urls")),
]
