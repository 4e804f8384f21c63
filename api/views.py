# api/views.py
from django.db import connection
from django.utils import timezone
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from . import dashboard

MAX_TREND_MONTHS = 36


def _respond(data, degraded, key=None):
    body = {key: data} if key else dict(data)
    if degraded:
        body['degraded'] = True
    return Response(body)


# ============================================
# DASHBOARD
# ============================================
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    """Available units, eligible donors, open requests and running campaigns"""
    data, degraded = dashboard.fetch('stats')
    return _respond(data, degraded)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_activity(request):
    data, degraded = dashboard.fetch('recent_activity')
    return _respond(data, degraded, 'activities')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def blood_distribution(request):
    data, degraded = dashboard.fetch('blood_distribution')
    return _respond(data, degraded, 'distribution')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def donation_trends(request):
    try:
        months = int(request.query_params.get('months', 6))
    except ValueError:
        raise ValidationError({'months': 'Months must be a whole number'})
    if not 1 <= months <= MAX_TREND_MONTHS:
        raise ValidationError({'months': f'Months must be between 1 and {MAX_TREND_MONTHS}'})

    data, degraded = dashboard.fetch('donation_trends', months)
    return _respond(data, degraded, 'trends')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reports(request):
    data, degraded = dashboard.fetch('reports')
    return _respond(data, degraded, 'reports')


# ============================================
# HEALTH
# ============================================
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    connection.ensure_connection()
    return Response({
        'status': 'OK',
        'timestamp': timezone.now(),
        'database': connection.vendor,
    })
