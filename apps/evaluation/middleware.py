from django.conf import settings
from django.http import HttpResponse

CORS_ALLOW_METHODS = 'GET, POST, OPTIONS'
CORS_ALLOW_HEADERS = 'Content-Type, Authorization'


class PublicCorsMiddleware:
    """Open CORS policy for the embeddable widget endpoints.

    Only paths under PUBLIC_API_PREFIX are touched; the management API keeps
    the restrictive django-cors-headers policy.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.prefix = getattr(settings, 'PUBLIC_API_PREFIX', '/api/v1/public/')
        self.max_age = str(getattr(settings, 'PUBLIC_CORS_MAX_AGE', 86400))

    def __call__(self, request):
        if not request.path.startswith(self.prefix):
            return self.get_response(request)

        if request.method == 'OPTIONS':
            response = HttpResponse(status=200)
        else:
            response = self.get_response(request)

        response['Access-Control-Allow-Origin'] = '*'
        response['Access-Control-Allow-Methods'] = CORS_ALLOW_METHODS
        response['Access-Control-Allow-Headers'] = CORS_ALLOW_HEADERS
        response['Access-Control-Max-Age'] = self.max_age
        return response
