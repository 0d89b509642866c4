import bleach
from rest_framework import serializers

from hms.services.patients import NIN_PATTERN

class PatientCreateSerializer(serializers.Serializer):
    nin = serializers.RegexField(NIN_PATTERN, error_messages={'invalid': 'NIN must be 18 digits'})
    full_name = serializers.CharField(max_length=128)
    date_of_birth = serializers.DateField()
    gender = serializers.ChoiceField(choices=['M', 'F'])
    blood_type = serializers.ChoiceField(choices=['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-'], required=False)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    address = serializers.CharField(required=False, allow_blank=True, max_length=255)
    consent_flags = serializers.DictField(child=serializers.BooleanField(), required=False)

    def validate_full_name(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_address(self, v):
        return bleach.clean((v or '').strip(), strip=True)

class PatientUpdateSerializer(PatientCreateSerializer):
    nin = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)

class PatientListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, max_length=64)
    gender = serializers.ChoiceField(choices=['M', 'F'], required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=20)
