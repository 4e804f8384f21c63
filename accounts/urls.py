from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    # ========================================
    # AUTHENTICATION
    # ========================================
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('logout/', views.logout, name='logout'),

    # ========================================
    # OWN ACCOUNT
    # ========================================
    path('profile/', views.profile, name='profile'),
    path('change-password/', views.change_password, name='change_password'),
    path('activities/', views.activities, name='activities'),

    # ========================================
    # USER ADMINISTRATION (admin only)
    # ========================================
    path('users/', views.users, name='users'),
    path('users/<int:user_id>/', views.update_user, name='update_user'),
    path('users/<int:user_id>/role/', views.update_role, name='update_role'),
]
