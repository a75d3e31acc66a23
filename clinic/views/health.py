from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..services import health as health_service

NO_CACHE = 'no-cache, no-store, must-revalidate'


@api_view(['GET', 'HEAD'])
def healthz(request):
    """Liveness and dependency report; unauthenticated and never audited."""
    if request.method == 'HEAD':
        resp = Response(status=200 if health_service.check_database() else 503)
    else:
        body, status = health_service.health_report()
        resp = Response(body, status=status)
    resp['Cache-Control'] = NO_CACHE
    resp['Pragma'] = 'no-cache'
    resp['Expires'] = '0'
    return resp
