from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.permissions import Permission, ensure_access
from hms.serializers.referral import ReferralCreateSerializer, ReferralListQuerySerializer
from hms.services import referrals as svc
from hms.services.audit import log_action


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def referrals(request):
    """Internal referrals, emergency transfers and inter-hospital transfers."""
    if request.method == 'GET':
        ensure_access(request, permission=Permission.VIEW_REFERRALS)
        q = ReferralListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return Response({'ok': True, 'data': svc.list_referrals(request.records, **q.validated_data)})

    actor = ensure_access(request, permission=Permission.CREATE_REFERRALS)
    s = ReferralCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    referral = svc.create_referral(request.records, actor, s.validated_data)
    log_action(request.records, actor=actor, action='REFERRAL_CREATED', object_type='referral',
               object_id=referral['id'], detail={'kind': referral['kind'], 'priority': referral['priority']})
    return Response({'ok': True, 'data': referral}, status=status.HTTP_201_CREATED)
