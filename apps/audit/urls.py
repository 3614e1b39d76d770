from django.urls import path
from . import views

app_name = 'audit'

urlpatterns = [
    # GET    /api/audit/logs/       - List (?table, action, actor_email, source)
    # DELETE /api/audit/logs/       - Delete all matching the same filters
    path('logs/', views.audit_logs, name='log-list'),
    path('logs/<int:log_id>/', views.audit_log_detail, name='log-detail'),
]
