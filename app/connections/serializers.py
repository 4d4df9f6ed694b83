"""
Serializers for the connections API.
"""

from rest_framework import serializers

from authentication.models import User
from authentication.serializers import UserSummarySerializer
from connections.models import Connection


class ConnectionSerializer(serializers.ModelSerializer):
    """Connection with both parties embedded."""

    requester = UserSummarySerializer(read_only=True)
    receiver = UserSummarySerializer(read_only=True)

    class Meta:
        model = Connection
        fields = ["id", "requester", "receiver", "status", "created_at", "responded_at"]
        read_only_fields = fields


class ConnectionRequestSerializer(serializers.Serializer):
    """
    Identify the user to connect with, by id or by email.
    """

    receiver_id = serializers.IntegerField(required=False)
    email = serializers.EmailField(required=False)

    def validate(self, attrs):
        receiver_id = attrs.get("receiver_id")
        email = attrs.get("email")
        if not receiver_id and not email:
            raise serializers.ValidationError("Provide receiver_id or email.")

        try:
            if receiver_id:
                receiver = User.objects.get(pk=receiver_id, is_active=True)
            else:
                receiver = User.objects.get_by_email(email)
        except User.DoesNotExist:
            raise serializers.ValidationError({"receiver": "User not found."})

        attrs["receiver"] = receiver
        return attrs


class ConnectionResponseSerializer(serializers.Serializer):
    accept = serializers.BooleanField()
