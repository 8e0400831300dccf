from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('accounts.urls')),
    path('api/', include('core.urls')),
    path('api/', include('clients.urls')),
    path('api/pricing/', include('pricing.urls')),
    path('api/', include('quotes.urls')),
    path('api/', include('shipments.urls')),
    path('api/', include('pickups.urls')),
]
