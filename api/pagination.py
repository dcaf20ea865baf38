from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class NeparkPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            'status': 'success',
            'results': data,
            'pagination': {
                'total': self.page.paginator.count,
                'page': self.page.number,
                'total_pages': self.page.paginator.num_pages,
                'per_page': self.get_page_size(self.request),
            },
        })
