"""Serializers for the member profile and sign-in flows.

- UserMeSerializer: read-only profile data for the authenticated user.
- EmailTokenObtainPairSerializer: obtain JWTs using email and password.
"""

from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class UserMeSerializer(serializers.ModelSerializer):
    """Profile fields for the current user."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "user_type",
            "board_position",
            "is_admin",
        ]
        read_only_fields = fields


class SignOutSerializer(serializers.Serializer):
    """Request body for signing out (blacklisting the refresh token)."""

    refresh = serializers.CharField()


class EmailTokenObtainPairSerializer(serializers.Serializer):
    """Obtain a JWT pair with email (case-insensitive) and password."""

    email = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = (attrs.get("email") or "").strip().lower()
        password = attrs.get("password") or ""
        if not email or not password:
            raise serializers.ValidationError({"detail": "email and password are required."})

        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            user = None

        if not user or not user.check_password(password) or not user.is_active:
            raise serializers.ValidationError({"detail": "Invalid credentials."})

        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}
