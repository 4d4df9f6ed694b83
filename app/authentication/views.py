"""
Authentication views.

This module provides API views for:
- Registration
- Own profile retrieve/update
- Presence status, heartbeat and lookup

Related files:
    - serializers.py: Request/response serialization
    - services.py: ProfileService, PresenceService
    - urls.py: URL routing

Note:
    Token endpoints come straight from simplejwt and are wired in urls.py:
    - Login: /api/v1/auth/token/
    - Refresh: /api/v1/auth/token/refresh/
    - Logout: /api/v1/auth/token/blacklist/
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    PresenceSerializer,
    PresenceStatusSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSummarySerializer,
)
from authentication.services import PresenceService, ProfileService
from core.views import service_error_response


class RegisterView(APIView):
    """
    POST: Create an account.

    URL: /api/v1/auth/register/

    Request body:
        {"email": "ada@example.com", "password": "...", "display_name": "Ada"}
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register new account",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: UserSummarySerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSummarySerializer(user).data, status=status.HTTP_201_CREATED)


class MeView(APIView):
    """
    GET: Current user's profile
    PATCH: Update display name / avatar

    URL: /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user's profile",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer},
    )
    def get(self, request):
        profile = ProfileService.ensure_profile_exists(request.user, request.user.email)
        return Response(ProfileSerializer(profile).data)

    @extend_schema(
        summary="Update profile",
        tags=["Auth - Profile"],
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(
            request.user,
            display_name=serializer.validated_data.get("display_name"),
            avatar_url=serializer.validated_data.get("avatar_url"),
        )
        if not result.success:
            return service_error_response(result)
        return Response(ProfileSerializer(result.data).data)


class PresenceView(APIView):
    """
    POST: Set own presence status (online/offline/away).

    URL: /api/v1/auth/presence/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Set presence status",
        tags=["Auth - Profile"],
        request=PresenceSerializer,
        responses={200: PresenceStatusSerializer},
    )
    def post(self, request):
        serializer = PresenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PresenceService.set_status(request.user, serializer.validated_data["status"])
        if not result.success:
            return service_error_response(result)
        return Response(PresenceService.get_status(request.user.pk).data)


class HeartbeatView(APIView):
    """
    POST: Mark the caller online and active now.

    URL: /api/v1/auth/presence/heartbeat/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Presence heartbeat",
        tags=["Auth - Profile"],
        request=None,
        responses={200: PresenceStatusSerializer},
    )
    def post(self, request):
        PresenceService.heartbeat(request.user)
        return Response(PresenceService.get_status(request.user.pk).data)


class UserPresenceView(APIView):
    """
    GET: Another user's presence.

    URL: /api/v1/auth/users/<user_id>/presence/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get user presence",
        tags=["Auth - Profile"],
        responses={200: PresenceStatusSerializer},
    )
    def get(self, request, user_id):
        result = PresenceService.get_status(user_id)
        if not result.success:
            return service_error_response(result)
        return Response(PresenceStatusSerializer(result.data).data)
