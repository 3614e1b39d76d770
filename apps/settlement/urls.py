from django.urls import path
from . import views

app_name = 'settlement'

urlpatterns = [
    # Totals
    path('aggregates/', views.aggregates, name='aggregates'),
    path('dashboard/', views.dashboard, name='dashboard'),  # Current member

    # Reports (?period=YYYY-MM, all-time when omitted)
    path('report/', views.report, name='report'),

    # Meal chart (?dinner_date=YYYY-MM-DD)
    path('meal-chart/', views.meal_chart, name='meal-chart'),
    path('meal-chart/edit/', views.meal_chart_edit, name='meal-chart-edit'),
    path('meal-chart/delete/', views.meal_chart_delete, name='meal-chart-delete'),
]
