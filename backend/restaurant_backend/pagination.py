import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardPagination(PageNumberPagination):
    """
    Page/limit pagination shared by every list endpoint.

    Clients pass ``?page=2&limit=20``; the response carries enough metadata for
    dashboards to render pagers without a second request.
    """

    page_size = 50
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        count = self.page.paginator.count
        page_size = self.page.paginator.per_page
        return Response(
            {
                "count": count,
                "current_page": self.page.number,
                "total_pages": math.ceil(count / page_size) if page_size else 0,
                "next": self.get_next_link(),
                "previous": self.get_previous_link(),
                "results": data,
            }
        )

    def get_paginated_response_schema(self, schema):
        response_schema = super().get_paginated_response_schema(schema)
        response_schema["properties"]["current_page"] = {"type": "integer", "example": 1}
        response_schema["properties"]["total_pages"] = {"type": "integer", "example": 3}
        return response_schema
