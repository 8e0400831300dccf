from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import GuestQuoteCreateView, GuestQuoteDetailView, GuestQuoteViewSet, QuoteViewSet

router = DefaultRouter()
router.register(r'quotes', QuoteViewSet, basename='quotes')
router.register(r'guest-quotes', GuestQuoteViewSet, basename='guest-quotes')

urlpatterns = [
    path('quotes/guest/', GuestQuoteCreateView.as_view(), name='guest-quote-create'),
    path('quotes/guest/<str:token>/', GuestQuoteDetailView.as_view(), name='guest-quote-detail'),
] + router.urls
