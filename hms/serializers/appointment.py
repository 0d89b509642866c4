from rest_framework import serializers

from hms.services.appointments import STATUSES, TYPES

class AppointmentCreateSerializer(serializers.Serializer):
    patient_nin = serializers.CharField()
    department = serializers.CharField(max_length=64)
    scheduled_at = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(min_value=5, max_value=480, required=False)
    type = serializers.ChoiceField(choices=TYPES, required=False)
    doctor_id = serializers.CharField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)

class AppointmentUpdateSerializer(serializers.Serializer):
    department = serializers.CharField(max_length=64, required=False)
    scheduled_at = serializers.DateTimeField(required=False)
    duration_minutes = serializers.IntegerField(min_value=5, max_value=480, required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    type = serializers.ChoiceField(choices=TYPES, required=False)
    doctor_id = serializers.CharField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)

class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    department = serializers.CharField(required=False, max_length=64)
    date = serializers.DateField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=20)
