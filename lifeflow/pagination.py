from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class LifeFlowPagination(PageNumberPagination):
    """
    ``?page=<n>&limit=<m>`` pagination answering with
    ``{"results": [...], "pagination": {page, limit, total, pages}}``
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        limit = self.get_page_size(self.request)
        total = self.page.paginator.count
        return Response({
            'results': data,
            'pagination': {
                'page': self.page.number,
                'limit': limit,
                'total': total,
                'pages': self.page.paginator.num_pages if total else 0,
            },
        })
