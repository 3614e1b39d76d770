from django.urls import path
from . import views

app_name = 'members'

urlpatterns = [
    path('', views.member_list, name='member-list'),
    path('me/', views.my_profile, name='my-profile'),
    path('<uuid:member_id>/report/', views.member_report, name='member-report'),
]
