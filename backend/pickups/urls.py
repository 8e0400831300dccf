from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import GuestPickupView, PickupRequestViewSet, PickupTrackingView

router = DefaultRouter()
router.register(r'pickups', PickupRequestViewSet, basename='pickups')

urlpatterns = [
    path('pickups/guest/', GuestPickupView.as_view(), name='pickup-guest'),
    path('pickups/track/<str:token>/', PickupTrackingView.as_view(), name='pickup-track'),
] + router.urls
