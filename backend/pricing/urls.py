from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    DeliveryEstimateView,
    DisplayRatesView,
    EstimateView,
    PricingConfigView,
    PricingOptionsView,
    TransportRateViewSet,
)

router = DefaultRouter()
router.register(r'transport-rates', TransportRateViewSet, basename='transport-rates')

urlpatterns = [
    path('estimate/', EstimateView.as_view(), name='pricing-estimate'),
    path('delivery-days/', DeliveryEstimateView.as_view(), name='pricing-delivery-days'),
    path('config/', PricingConfigView.as_view(), name='pricing-config'),
    path('options/', PricingOptionsView.as_view(), name='pricing-options'),
    path('display-rates/', DisplayRatesView.as_view(), name='pricing-display-rates'),
] + router.urls
