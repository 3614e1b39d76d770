from rest_framework import status, viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.members.session import resolve_session
from apps.settlement.store import DjangoLedgerStore
from .models import BazarRecord, DepositRecord, MealRecord
from .permissions import CanManageRecord
from .serializers import (
    RecordFilterSerializer,
    MealInputSerializer,
    BazarInputSerializer,
    DepositInputSerializer,
    MealRecordSerializer,
    BazarRecordSerializer,
    DepositRecordSerializer,
)
from . import services
from .services import (
    LedgerServiceError,
    RecordNotFoundError,
    RecordPermissionError,
    SchemaOutdatedError,
)


def service_error_response(exc):
    """Map a ledger service exception onto an HTTP error response."""
    if isinstance(exc, RecordPermissionError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, RecordNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, SchemaOutdatedError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc)}, status=code)


class LedgerPagination(PageNumberPagination):
    """Custom pagination for ledger records."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


RECORD_LIST_PARAMETERS = [
    OpenApiParameter('scope', OpenApiTypes.STR, description="'own' (default) or 'all'"),
    OpenApiParameter('member', OpenApiTypes.UUID, description='Filter by member ID'),
    OpenApiParameter('date_from', OpenApiTypes.DATE, description='Records on or after (YYYY-MM-DD)'),
    OpenApiParameter('date_to', OpenApiTypes.DATE, description='Records on or before (YYYY-MM-DD)'),
]


class LedgerRecordViewSet(viewsets.ModelViewSet):
    """
    Base ViewSet for meal, bazar and deposit records.

    Reads go through the queryset; writes go through the ledger services so
    that ownership, linked deposits and audit logging apply uniformly.
    Subclasses set the model, serializers and the three service callables.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = LedgerPagination
    input_serializer_class = None
    create_service = None
    update_service = None
    delete_service = None
    record_kwarg = None

    def get_permissions(self):
        """Use different permissions for different actions."""
        if self.action in ['update', 'partial_update', 'destroy']:
            return [IsAuthenticated(), CanManageRecord()]
        return super().get_permissions()

    @property
    def session(self):
        if not hasattr(self, '_session'):
            self._session = resolve_session(self.request.user)
        return self._session

    def get_queryset(self):
        """Filter records using input serializer validation and row visibility."""
        queryset = self.queryset.select_related('member')
        session = self.session

        if not DjangoLedgerStore(session).sees_all_rows:
            queryset = queryset.filter(member_id=session.member_id)

        if self.action != 'list':
            return queryset

        filter_serializer = RecordFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params['scope'] == RecordFilterSerializer.SCOPE_OWN:
            queryset = queryset.filter(member_id=session.member_id)
        if 'member' in params:
            queryset = queryset.filter(member_id=params['member'])
        if 'date_from' in params:
            queryset = queryset.filter(date__gte=params['date_from'])
        if 'date_to' in params:
            queryset = queryset.filter(date__lte=params['date_to'])

        return queryset

    def create(self, request, *args, **kwargs):
        input_serializer = self.input_serializer_class(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            record = self.create_service(session=self.session, **input_serializer.validated_data)
        except LedgerServiceError as e:
            return service_error_response(e)

        return Response(self.get_serializer(record).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        input_serializer = self.input_serializer_class(data=request.data, partial=partial)
        input_serializer.is_valid(raise_exception=True)

        changes = dict(input_serializer.validated_data)
        changes.pop('member', None)
        try:
            record = self.update_service(
                session=self.session, **{self.record_kwarg: instance}, **changes
            )
        except LedgerServiceError as e:
            return service_error_response(e)

        return Response(self.get_serializer(record).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        try:
            self.delete_service(session=self.session, **{self.record_kwarg: instance})
        except LedgerServiceError as e:
            return service_error_response(e)

        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(parameters=RECORD_LIST_PARAMETERS, tags=['ledger']),
    create=extend_schema(request=MealInputSerializer, responses={201: MealRecordSerializer}, tags=['ledger']),
    update=extend_schema(request=MealInputSerializer, tags=['ledger']),
    partial_update=extend_schema(request=MealInputSerializer, tags=['ledger']),
    retrieve=extend_schema(tags=['ledger']),
    destroy=extend_schema(tags=['ledger']),
)
class MealRecordViewSet(LedgerRecordViewSet):
    """
    Meal records.

    list: Own meals, or everyone's with ?scope=all
    create: Log meals for a day
    update/partial_update: Change date or meal count (owner or staff)
    destroy: Delete a meal record (owner or staff)
    """

    queryset = MealRecord.objects.all()
    serializer_class = MealRecordSerializer
    input_serializer_class = MealInputSerializer
    create_service = staticmethod(services.create_meal)
    update_service = staticmethod(services.update_meal)
    delete_service = staticmethod(services.delete_meal)
    record_kwarg = 'meal'


@extend_schema_view(
    list=extend_schema(parameters=RECORD_LIST_PARAMETERS, tags=['ledger']),
    create=extend_schema(request=BazarInputSerializer, responses={201: BazarRecordSerializer}, tags=['ledger']),
    update=extend_schema(request=BazarInputSerializer, tags=['ledger']),
    partial_update=extend_schema(request=BazarInputSerializer, tags=['ledger']),
    retrieve=extend_schema(tags=['ledger']),
    destroy=extend_schema(tags=['ledger']),
)
class BazarRecordViewSet(LedgerRecordViewSet):
    """
    Bazar (shared grocery) records.

    paid_from='user' also writes a linked deposit for the buyer; switching
    back to 'box' or deleting the bazar removes that deposit.
    """

    queryset = BazarRecord.objects.all()
    serializer_class = BazarRecordSerializer
    input_serializer_class = BazarInputSerializer
    create_service = staticmethod(services.create_bazar)
    update_service = staticmethod(services.update_bazar)
    delete_service = staticmethod(services.delete_bazar)
    record_kwarg = 'bazar'


@extend_schema_view(
    list=extend_schema(parameters=RECORD_LIST_PARAMETERS, tags=['ledger']),
    create=extend_schema(request=DepositInputSerializer, responses={201: DepositRecordSerializer}, tags=['ledger']),
    update=extend_schema(request=DepositInputSerializer, tags=['ledger']),
    partial_update=extend_schema(request=DepositInputSerializer, tags=['ledger']),
    retrieve=extend_schema(tags=['ledger']),
    destroy=extend_schema(tags=['ledger']),
)
class DepositRecordViewSet(LedgerRecordViewSet):
    """Cash deposits into the common pool."""

    queryset = DepositRecord.objects.all()
    serializer_class = DepositRecordSerializer
    input_serializer_class = DepositInputSerializer
    create_service = staticmethod(services.create_deposit)
    update_service = staticmethod(services.update_deposit)
    delete_service = staticmethod(services.delete_deposit)
    record_kwarg = 'deposit'

    def get_queryset(self):
        return super().get_queryset().select_related('bazar_source')
