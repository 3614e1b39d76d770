from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.settlement.exceptions import SettlementServiceError
from apps.settlement.serializers import ErrorSerializer, MemberReportSerializer
from apps.settlement.services import SettlementQueries
from apps.settlement.store import DjangoLedgerStore
from apps.settlement.views import settlement_error_response
from .exceptions import MemberNotFoundError, MembersServiceError
from .serializers import MemberProfileUpdateSerializer, MemberSerializer
from .session import resolve_session
from . import services


@extend_schema(
    responses={200: MemberSerializer(many=True)},
    description="All members ordered by display name.",
    tags=['members'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def member_list(request):
    """List members."""
    resolve_session(request.user)
    return Response(MemberSerializer(services.list_members(), many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: MemberSerializer},
    description="Current member's profile; created on first access.",
    tags=['members'],
)
@extend_schema(
    methods=['PATCH'],
    request=MemberProfileUpdateSerializer,
    responses={200: MemberSerializer, 400: ErrorSerializer},
    description="Update own name and/or phone.",
    tags=['members'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def my_profile(request):
    """Get or update the current member's profile."""
    session = resolve_session(request.user)

    if request.method == 'GET':
        return Response(MemberSerializer(session.member).data)

    serializer = MemberProfileUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    try:
        member = services.update_profile(session, **serializer.validated_data)
    except MembersServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(MemberSerializer(member).data)


@extend_schema(
    responses={
        200: MemberReportSerializer,
        404: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="A member's all-time stats at the global meal rate plus their meals, bazar and deposits (newest first).",
    tags=['members'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def member_report(request, member_id):
    """Member report - thin HTTP handler."""
    session = resolve_session(request.user)
    try:
        services.get_member(member_id)
        data = SettlementQueries.member_report(DjangoLedgerStore(session), member_id)
    except MemberNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except SettlementServiceError as e:
        return settlement_error_response(e)

    if data is None:
        return Response({'error': f"Member {member_id} not found"}, status=status.HTTP_404_NOT_FOUND)

    return Response(MemberReportSerializer(data).data)
