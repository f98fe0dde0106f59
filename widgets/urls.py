from django.urls import path

from . import views

urlpatterns = [
    path("widgets", views.WidgetListView.as_view(), name="widget-list"),
    path("widgets/reorder", views.WidgetReorderView.as_view(), name="widget-reorder"),
    path("widgets/<int:pk>", views.WidgetDetailView.as_view(), name="widget-detail"),
]
