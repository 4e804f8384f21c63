import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, NotFound, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts.activity import log_activity
from accounts.authentication import issue_token
from accounts.decorators import role_required
from accounts.models import UserActivity
from accounts.serializers import (
    ChangePasswordSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    RoleSerializer,
    UserActivitySerializer,
    UserAdminUpdateSerializer,
    UserSerializer,
    UserSummarySerializer,
)
from accounts.services import find_demo_account, profile_stats, provision_demo_user, register_user
from lifeflow.pagination import LifeFlowPagination

logger = logging.getLogger(__name__)

User = get_user_model()


def paginate(request, queryset, serializer_class):
    """Page a queryset with ``?page=&limit=``"""
    paginator = LifeFlowPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(serializer_class(page, many=True).data)


def get_user_or_404(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found")


# -----------------------------
# REGISTER API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    Registers a staff account and returns a bearer token.
    Supplying a blood type also creates the donor record.
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = register_user(serializer.validated_data)

    return Response(
        {
            "message": "User registered successfully",
            "token": issue_token(user),
            "user": UserSummarySerializer(user).data,
        },
        status=status.HTTP_201_CREATED
    )


# -----------------------------
# LOGIN API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    Email/password login. Falls back to the built-in demo accounts when
    enabled and no stored account has the email.
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']
    password = serializer.validated_data['password']

    user = User.objects.filter(email__iexact=email).first()

    if user is None:
        account = find_demo_account(email, password)
        if account is None:
            raise AuthenticationFailed("Invalid email or password")
        user = provision_demo_user(account)
    elif not user.check_password(password):
        raise AuthenticationFailed("Invalid email or password")
    elif not user.is_active:
        raise AuthenticationFailed("Account is deactivated. Contact administrator.")
    else:
        user = authenticate(request, email=email, password=password)
        if user is None:
            raise AuthenticationFailed("Invalid email or password")

    log_activity(user, 'login', 'User logged in', request, entity_type='user', entity_id=user.pk)
    logger.info(f"Login succeeded for {user.email}")

    return Response({
        "message": "Login successful",
        "token": issue_token(user),
        "user": UserSummarySerializer(user).data,
    })


# -----------------------------
# PROFILE API
# -----------------------------
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile(request):
    user = request.user

    if request.method == 'GET':
        log_activity(user, 'view_profile', 'Viewed profile', request, entity_type='user', entity_id=user.pk)
        return Response({
            "user": UserSerializer(user).data,
            "stats": profile_stats(user),
        })

    serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        serializer.save()
        log_activity(
            user, 'update_profile', 'Updated profile', request,
            entity_type='user', entity_id=user.pk,
            metadata={'fields': sorted(serializer.validated_data)},
        )

    return Response({
        "message": "Profile updated successfully",
        "user": UserSerializer(user).data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    if not user.check_password(serializer.validated_data['current_password']):
        raise ValidationError({'current_password': 'Current password is incorrect'})

    with transaction.atomic():
        user.set_password(serializer.validated_data['new_password'])
        user.save()
        log_activity(user, 'change_password', 'Changed password', request, entity_type='user', entity_id=user.pk)

    return Response({"message": "Password changed successfully"})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Tokens are stateless; logout only leaves an audit entry"""
    log_activity(request.user, 'logout', 'User logged out', request, entity_type='user', entity_id=request.user.pk)
    return Response({"message": "Logged out successfully"})


# -----------------------------
# USER ADMINISTRATION (admin only)
# -----------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
@role_required('admin')
def users(request):
    queryset = User.objects.order_by('-date_joined')
    return paginate(request, queryset, UserSerializer)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
@role_required('admin')
def update_user(request, user_id):
    user = get_user_or_404(user_id)

    serializer = UserAdminUpdateSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        serializer.save()
        log_activity(
            request.user, 'update_user', f'Updated user {user.email}', request,
            entity_type='user', entity_id=user.pk,
            metadata={'fields': sorted(serializer.validated_data)},
        )

    return Response({
        "message": "User updated successfully",
        "user": UserSerializer(user).data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
@role_required('admin')
def update_role(request, user_id):
    user = get_user_or_404(user_id)

    serializer = RoleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        user.role = serializer.validated_data['role']
        user.save(update_fields=['role', 'updated_at'])
        log_activity(
            request.user, 'update_user', f'Changed role of {user.email} to {user.role}', request,
            entity_type='user', entity_id=user.pk, metadata={'role': user.role},
        )

    return Response({
        "message": "User role updated successfully",
        "user": UserSerializer(user).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activities(request):
    """Admins see every entry, everyone else only their own"""
    queryset = UserActivity.objects.select_related('user').order_by('-created_at')
    if request.user.role != 'admin':
        queryset = queryset.filter(user=request.user)
    return paginate(request, queryset, UserActivitySerializer)
