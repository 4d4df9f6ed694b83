"""
Serializers for authentication models.

This module provides DRF serializers for:
- Registration (create user)
- User summaries embedded by the other apps
- Own profile read/update
- Presence updates

Security:
    - Password fields are write-only
    - Presence fields are read-only on the profile serializer; they change
      through PresenceService only
"""

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from authentication.models import Profile, User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact user representation embedded in messages, members, connections.
    """

    display_name = serializers.SerializerMethodField()
    avatar_url = serializers.CharField(source="profile.avatar_url", read_only=True, default=None)
    status = serializers.CharField(source="profile.status", read_only=True, default=None)

    class Meta:
        model = User
        fields = ["id", "email", "display_name", "avatar_url", "status"]
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_full_name()


class RegisterSerializer(serializers.Serializer):
    """Create an account; the profile is bootstrapped by a signal."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    display_name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with that email already exists.")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            display_name=validated_data.get("display_name", ""),
        )


class ProfileSerializer(serializers.ModelSerializer):
    """Own profile (read)."""

    user_id = serializers.IntegerField(source="user.id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user_id",
            "email",
            "display_name",
            "avatar_url",
            "status",
            "last_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=150, required=False)
    avatar_url = serializers.URLField(max_length=500, required=False, allow_blank=True, allow_null=True)


class PresenceSerializer(serializers.Serializer):
    """Status change request."""

    status = serializers.ChoiceField(choices=Profile.Status.choices)


class PresenceStatusSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    status = serializers.CharField()
    last_active = serializers.DateTimeField()
