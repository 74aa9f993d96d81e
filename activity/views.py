from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from utils.rbac import is_admin

from .serializers import ActivityHistoryQuerySerializer, ActivityLogSerializer

User = get_user_model()


@extend_schema(
    parameters=[ActivityHistoryQuerySerializer],
    responses={200: ActivityLogSerializer(many=True)},
    tags=["Activity"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def get_activity_history(request):
    """
    Audit trail of the current user, newest first.

    Admins may pass ``user_id`` to read another user's entries.
    """
    query = ActivityHistoryQuerySerializer(data=request.query_params)
    if not query.is_valid():
        return Response({"error": "Invalid query parameters", "details": query.errors}, status=status.HTTP_400_BAD_REQUEST)

    params = query.validated_data
    user = request.user
    if params.get("user_id"):
        if not is_admin(request.user):
            return Response({"detail": "Only admins can read other users' activity"}, status=status.HTTP_403_FORBIDDEN)
        user = User.objects.filter(id=params["user_id"]).first()
        if user is None:
            return Response({"detail": "User not found"}, status=status.HTTP_404_NOT_FOUND)

    entries = container.activity_service().history(
        user=user,
        resource=params.get("resource"),
        resource_id=params.get("resource_id"),
    )[: params["limit"]]

    return Response({"results": ActivityLogSerializer(entries, many=True).data}, status=status.HTTP_200_OK)
