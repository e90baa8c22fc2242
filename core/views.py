"""Views for user registration and authentication."""
import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework_simplejwt.tokens import RefreshToken
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample
from rest_framework import serializers as drf_serializers

from .serializers import (
    ChangePasswordSerializer,
    UserLoginSerializer,
    UserRegistrationSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

logger = logging.getLogger('api')


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {'refresh': str(refresh), 'access': str(refresh.access_token)}


# Response serializers for Swagger documentation
class TokenResponseSerializer(drf_serializers.Serializer):
    refresh = drf_serializers.CharField()
    access = drf_serializers.CharField()


class AuthResponseSerializer(drf_serializers.Serializer):
    message = drf_serializers.CharField()
    user = UserSerializer()
    tokens = TokenResponseSerializer()


class RegisterView(APIView):
    permission_classes = [AllowAny]
    
    @extend_schema(
        summary="Register a new user",
        description="Create a new user account and receive JWT tokens",
        request=UserRegistrationSerializer,
        responses={201: AuthResponseSerializer},
        examples=[
            OpenApiExample(
                "Register Example",
                value={
                    "email": "asha@example.com",
                    "name": "Asha Verma",
                    "password": "SecurePass123!",
                    "password_confirm": "SecurePass123!",
                    "phone": "9876543210"
                },
                request_only=True
            )
        ],
        tags=["Authentication"]
    )
    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s", user.email)
        return Response({
            'message': 'User registered successfully',
            'user': UserSerializer(user).data,
            'tokens': issue_tokens(user)
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]
    
    @extend_schema(
        summary="Login user",
        description="Authenticate with email and password to receive JWT tokens",
        request=UserLoginSerializer,
        responses={200: AuthResponseSerializer},
        examples=[
            OpenApiExample(
                "Login Example",
                value={
                    "email": "admin@railway.local",
                    "password": "Admin@123"
                },
                request_only=True
            )
        ],
        tags=["Authentication"]
    )
    def post(self, request):
        serializer = UserLoginSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return Response({
            'message': 'Login successful',
            'user': UserSerializer(user).data,
            'tokens': issue_tokens(user)
        }, status=status.HTTP_200_OK)


class UserProfileView(APIView):
    @extend_schema(
        summary="Get current user profile",
        description="Returns the profile of the authenticated user",
        responses={200: UserSerializer},
        tags=["Authentication"]
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Update current user profile",
        description="Change the name or phone number of the authenticated user. Email is fixed.",
        request=UserUpdateSerializer,
        responses={200: UserSerializer},
        examples=[
            OpenApiExample(
                "Update phone",
                value={"phone": "9123456780"},
                request_only=True
            )
        ],
        tags=["Authentication"]
    )
    def patch(self, request):
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data)


class ChangePasswordView(APIView):
    @extend_schema(
        summary="Change password",
        description="Replace the password of the authenticated user and receive a fresh token pair",
        request=ChangePasswordSerializer,
        responses={200: AuthResponseSerializer},
        tags=["Authentication"]
    )
    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Password changed for %s", user.email)
        return Response({
            'message': 'Password changed successfully',
            'user': UserSerializer(user).data,
            'tokens': issue_tokens(user)
        })
