from rest_framework import serializers

from hms.permissions import Role
from hms.serializers.auth import validate_password_strength

class StaffCreateSerializer(serializers.Serializer):
    username = serializers.RegexField(r'^[\w.@+-]{3,64}$')
    full_name = serializers.CharField(max_length=128)
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=Role.choices)
    department = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    password = serializers.CharField(write_only=True, trim_whitespace=False, validators=[validate_password_strength])

class CacheActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['invalidate', 'clear', 'cleanup'])
    pattern = serializers.CharField(required=False, max_length=128)

    def validate(self, attrs):
        if attrs['action'] == 'invalidate' and not attrs.get('pattern'):
            raise serializers.ValidationError({'pattern': 'required for invalidate'})
        return attrs

class HospitalSettingsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128, required=False)
    address = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=32, required=False)
    email = serializers.EmailField(required=False)
    director = serializers.CharField(max_length=128, required=False)
    capacity = serializers.IntegerField(min_value=0, required=False)
    departments = serializers.ListField(child=serializers.CharField(max_length=64), required=False)
