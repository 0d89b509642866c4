from rest_framework import serializers

from hms.services.referrals import KINDS, PRIORITIES, STATUSES

class ReferralCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=KINDS, default='internal')
    patient_nin = serializers.CharField()
    from_department = serializers.CharField(max_length=64)
    to_department = serializers.CharField(max_length=64)
    to_hospital = serializers.CharField(max_length=128, required=False, allow_null=True)
    reason = serializers.CharField(max_length=1000)
    priority = serializers.ChoiceField(choices=PRIORITIES, required=False)

class ReferralListQuerySerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=KINDS, required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
