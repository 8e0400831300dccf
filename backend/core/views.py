from django.db.models import Q
from django.shortcuts import get_object_or_404

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsAdminOrReadOnly

from .models import Country
from .serializers import CountrySerializer


class CountryViewSet(viewsets.ModelViewSet):
    """
    Countries available for routes, addresses and transport rates.

    Reads are open to any authenticated user, writes to ADMIN only.
    Filters: ``?search=`` (code or name), ``?active=true``.
    """
    serializer_class = CountrySerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        qs = Country.objects.all().order_by('name')
        search = self.request.query_params.get('search')
        if search:
            qs = qs.filter(Q(code__icontains=search) | Q(name__icontains=search))
        active = self.request.query_params.get('active')
        if active is not None:
            qs = qs.filter(is_active=active.lower() in ('1', 'true', 'yes'))
        return qs

    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        country = self.get_object()
        country.is_active = not country.is_active
        country.save(update_fields=['is_active', 'updated_at'])
        return Response(self.get_serializer(country).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path=r'by-code/(?P<code>[A-Za-z]{2})')
    def by_code(self, request, code=None):
        country = get_object_or_404(Country, code=code.upper())
        return Response(self.get_serializer(country).data)
