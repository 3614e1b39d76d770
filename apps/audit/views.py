from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .models import AuditLog
from .serializers import AuditFilterSerializer, AuditLogSerializer
from . import services

AUDIT_FILTER_PARAMETERS = [
    OpenApiParameter('table', OpenApiTypes.STR, description="'meals', 'bazar' or 'deposits'"),
    OpenApiParameter('action', OpenApiTypes.STR, description="'create', 'update' or 'delete'"),
    OpenApiParameter('actor_email', OpenApiTypes.STR, description='Actor email contains'),
    OpenApiParameter('source', OpenApiTypes.STR, description="Write origin, e.g. 'meal_chart'"),
]


@extend_schema(
    methods=['GET'],
    parameters=AUDIT_FILTER_PARAMETERS,
    responses={200: AuditLogSerializer(many=True)},
    description=f"Newest audit entries first, at most {services.MAX_LIST_ENTRIES}. Staff only.",
    tags=['audit'],
)
@extend_schema(
    methods=['DELETE'],
    parameters=AUDIT_FILTER_PARAMETERS,
    description="Delete every audit entry matching the filters. Staff only.",
    tags=['audit'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAdminUser])
def audit_logs(request):
    """List or bulk-delete audit entries."""
    filter_serializer = AuditFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)
    filters = filter_serializer.validated_data

    if request.method == 'DELETE':
        deleted = services.delete_entries(**filters)
        return Response({'deleted': deleted})

    entries = services.list_entries(**filters)
    return Response(AuditLogSerializer(entries, many=True).data)


@extend_schema(
    responses={200: AuditLogSerializer},
    description="Retrieve or delete one audit entry. Staff only.",
    tags=['audit'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAdminUser])
def audit_log_detail(request, log_id):
    """Retrieve or delete a single audit entry."""
    entry = get_object_or_404(AuditLog, id=log_id)

    if request.method == 'DELETE':
        entry.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(AuditLogSerializer(entry).data)
