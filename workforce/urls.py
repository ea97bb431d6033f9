"""URL routing for leave and swap request flows."""
from django.urls import path

from . import views

app_name = "workforce"

urlpatterns = [
    path("", views.DashboardView.as_view(), name="dashboard"),
    path("leave/", views.LeaveRequestListView.as_view(), name="leave_list"),
    path("leave/new/", views.ApplyForLeaveView.as_view(), name="apply"),
    path("leave/<int:pk>/", views.LeaveRequestDetailView.as_view(), name="leave_detail"),
    path(
        "leave/<int:pk>/<str:action>/",
        views.review_leave_request,
        name="review_leave",
    ),
    path("schedule/", views.ScheduleView.as_view(), name="schedule"),
    path("balances/", views.LeaveBalanceListView.as_view(), name="balance_list"),
    path("swaps/", views.SwapRequestListView.as_view(), name="swap_list"),
    path("swaps/new/", views.CreateSwapRequestView.as_view(), name="swap_create"),
    path("swaps/<int:pk>/", views.SwapRequestDetailView.as_view(), name="swap_detail"),
    path(
        "swaps/<int:pk>/respond/<str:action>/",
        views.respond_swap_request,
        name="respond_swap",
    ),
    path(
        "swaps/<int:pk>/review/<str:action>/",
        views.review_swap_request,
        name="review_swap",
    ),
    path(
        "comments/<str:kind>/<int:pk>/",
        views.post_comment,
        name="post_comment",
    ),
    path("settings/", views.SettingsView.as_view(), name="settings"),
    path("balances/adjust/", views.BalanceAdjustmentView.as_view(), name="adjust_balance"),
]
