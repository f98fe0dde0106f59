from django.urls import path

from . import views

urlpatterns = [
    path("community-tips", views.TipListView.as_view(), name="tip-list"),
    path("community-tips/<int:pk>", views.TipDetailView.as_view(), name="tip-detail"),
    path("community-tips/<int:pk>/vote", views.TipVoteView.as_view(), name="tip-vote"),
]
