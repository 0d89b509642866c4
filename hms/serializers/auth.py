import re

from rest_framework import serializers

MIN_PASSWORD_LENGTH = 8
_PASSWORD_CLASSES = (
    (re.compile(r'[a-z]'), 'a lowercase letter'),
    (re.compile(r'[A-Z]'), 'an uppercase letter'),
    (re.compile(r'\d'), 'a digit'),
    (re.compile(r'[^A-Za-z0-9]'), 'a special character'),
)


def validate_password_strength(value):
    """Field validator for new passwords: length plus one of each character class."""
    errors = []
    if len(value) < MIN_PASSWORD_LENGTH:
        errors.append(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
    missing = [label for regex, label in _PASSWORD_CLASSES if not regex.search(value)]
    if missing:
        errors.append('Password must contain ' + ', '.join(missing))
    if errors:
        raise serializers.ValidationError(errors)

class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()
    hospitalCode = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password is required')
        return v

    def validate_hospitalCode(self, v):
        return (v or '').strip().upper()

class RefreshSerializer(serializers.Serializer):
    refreshToken = serializers.CharField()

class LogoutSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(required=False, allow_blank=True)

class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, v):
        return v.strip().lower()

class PasswordResetConfirmSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)
    newPassword = serializers.CharField(write_only=True, trim_whitespace=False,
                                        validators=[validate_password_strength])
