import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.ledger.services import (
    LedgerServiceError,
    delete_meal_chart_cell,
    edit_meal_chart_cell,
)
from apps.ledger.views import service_error_response
from apps.members.session import resolve_session
from .exceptions import DataAccessError, SettlementServiceError
from .reports import Period
from .serializers import (
    # Input serializers
    PeriodQuerySerializer,
    MealChartQuerySerializer,
    MealChartEditSerializer,
    MealChartDeleteSerializer,
    # Response serializers
    GlobalAggregateSerializer,
    MemberReportSerializer,
    PeriodReportSerializer,
    MealChartSerializer,
    MealChartEditResponseSerializer,
    MealChartDeleteResponseSerializer,
    ErrorSerializer,
)
from .services import SettlementQueries
from .store import DjangoLedgerStore

logger = logging.getLogger(__name__)


def settlement_error_response(exc):
    """Data-access failures are 503; anything else the caller got wrong is 400."""
    if isinstance(exc, DataAccessError):
        logger.error("Settlement data access failed: %s", exc)
        return Response({'error': str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def store_for(request):
    return DjangoLedgerStore(resolve_session(request.user))


@extend_schema(
    responses={
        200: GlobalAggregateSerializer,
        503: ErrorSerializer,
    },
    description="Global totals, meal rate and pool remaining across all members.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def aggregates(request):
    """Global aggregates - thin HTTP handler."""
    try:
        data = SettlementQueries.global_aggregates(store_for(request))
    except SettlementServiceError as e:
        return settlement_error_response(e)

    return Response(GlobalAggregateSerializer(data).data)


@extend_schema(
    responses={
        200: MemberReportSerializer,
        503: ErrorSerializer,
    },
    description="Current member's all-time stats priced at the global meal rate.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard for the current member - thin HTTP handler."""
    session = resolve_session(request.user)
    try:
        data = SettlementQueries.member_report(DjangoLedgerStore(session), session.member_id)
    except SettlementServiceError as e:
        return settlement_error_response(e)

    return Response(MemberReportSerializer(data).data)


@extend_schema(
    parameters=[
        OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM); omit for all-time'),
    ],
    responses={
        200: PeriodReportSerializer,
        400: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="All-time or monthly report: totals, meal rate, ledger, meal pivot, bazar and deposit lists.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def report(request):
    """Period report - thin HTTP handler."""
    query_serializer = PeriodQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    try:
        period = Period.parse(query_serializer.validated_data['period'])
        data = SettlementQueries.period_report(store_for(request), period)
    except SettlementServiceError as e:
        return settlement_error_response(e)

    return Response(PeriodReportSerializer(data).data)


@extend_schema(
    parameters=[
        OpenApiParameter('dinner_date', OpenApiTypes.DATE, description='Dinner date (YYYY-MM-DD); defaults to today'),
    ],
    responses={
        200: MealChartSerializer,
        400: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="Dinner on the given date and lunch on the next day, carried forward from each member's latest record.",
    tags=['settlement'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def meal_chart(request):
    """Meal chart - thin HTTP handler."""
    query_serializer = MealChartQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    try:
        chart = SettlementQueries.meal_chart(
            store_for(request),
            dinner_date=query_serializer.validated_data.get('dinner_date'),
        )
    except SettlementServiceError as e:
        return settlement_error_response(e)

    return Response(MealChartSerializer(chart).data)


@extend_schema(
    request=MealChartEditSerializer,
    responses={
        200: MealChartEditResponseSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
        404: ErrorSerializer,
    },
    description="Store new meal counts on the source records behind a chart row. Never creates records.",
    tags=['settlement'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def meal_chart_edit(request):
    """Edit meal chart cells - thin HTTP handler."""
    serializer = MealChartEditSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        updated = edit_meal_chart_cell(
            session=resolve_session(request.user),
            **serializer.validated_data
        )
    except LedgerServiceError as e:
        return service_error_response(e)

    return Response({'updated': [str(meal.id) for meal in updated]})


@extend_schema(
    request=MealChartDeleteSerializer,
    responses={
        200: MealChartDeleteResponseSerializer,
        400: ErrorSerializer,
        403: ErrorSerializer,
        404: ErrorSerializer,
    },
    description="Delete the source records behind a chart row.",
    tags=['settlement'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def meal_chart_delete(request):
    """Delete meal chart cells - thin HTTP handler."""
    serializer = MealChartDeleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        deleted = delete_meal_chart_cell(
            session=resolve_session(request.user),
            **serializer.validated_data
        )
    except LedgerServiceError as e:
        return service_error_response(e)

    return Response({'deleted': [str(record_id) for record_id in deleted]})
