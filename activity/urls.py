from django.urls import path

from . import views

app_name = "activity"

urlpatterns = [
    path("history/", views.get_activity_history, name="history"),
]
