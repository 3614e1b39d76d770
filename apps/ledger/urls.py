from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'ledger'

router = DefaultRouter()
router.register(r'meals', views.MealRecordViewSet, basename='meal')
router.register(r'bazar', views.BazarRecordViewSet, basename='bazar')
router.register(r'deposits', views.DepositRecordViewSet, basename='deposit')

urlpatterns = [
    # GET    /api/ledger/meals/              - List meals (?scope=all, member, date_from, date_to)
    # POST   /api/ledger/meals/              - Log meals
    # GET    /api/ledger/meals/{id}/         - Meal details
    # PUT    /api/ledger/meals/{id}/         - Update meal
    # PATCH  /api/ledger/meals/{id}/         - Partial update
    # DELETE /api/ledger/meals/{id}/         - Delete meal
    # Same routes for /bazar/ and /deposits/
    path('', include(router.urls)),
]
