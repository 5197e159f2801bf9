# backend/hdu_core/common/api/pagination.py
from __future__ import annotations

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    page_size_query_param = "page_size"
    max_page_size = 200

    def get_page_size(self, request):
        self.page_size = getattr(settings, "HDU_PAGE_SIZE", 20)
        return super().get_page_size(request)


def paginate(request, queryset, serializer_class, *, context: dict | None = None) -> Response:
    """
    ``{count, next, previous, results}`` for list endpoints; a bare list when
    HDU_PAGE_SIZE is 0.
    """
    context = {"request": request, **(context or {})}
    paginator = DefaultPagination()
    page = paginator.paginate_queryset(queryset, request)
    if page is None:
        return Response(serializer_class(queryset, many=True, context=context).data)
    return paginator.get_paginated_response(serializer_class(page, many=True, context=context).data)
