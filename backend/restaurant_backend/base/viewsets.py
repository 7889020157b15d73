from rest_framework import viewsets
from rest_framework.response import Response

from ..pagination import StandardPagination


class BaseViewSet(viewsets.GenericViewSet):
    """
    Base ViewSet that provides standard configuration for the project's APIs.

    Features:
    - Standard page/limit pagination
    - ``paginated_response`` helper for list-style actions that build their
      own queryset instead of relying on ``get_queryset``

    Usage:
        class OrderViewSet(BaseViewSet):
            serializer_class = OrderSerializer
    """

    pagination_class = StandardPagination

    def paginated_response(self, queryset, serializer_class=None):
        serializer_class = serializer_class or self.get_serializer_class()
        context = self.get_serializer_context()

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = serializer_class(page, many=True, context=context)
            return self.get_paginated_response(serializer.data)

        serializer = serializer_class(queryset, many=True, context=context)
        return Response(serializer.data)
