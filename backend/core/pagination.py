from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PagedList(PageNumberPagination):
    """Page-number paginator used by every list endpoint."""

    page_size = 10
    page_size_query_param = "page_size"
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            "count": self.page.paginator.count,
            "page_size": self.get_page_size(self.request),
            "next": self.get_next_link(),
            "previous": self.get_previous_link(),
            "results": data,
        })
