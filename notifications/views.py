import logging

from django.apps import apps
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .dispatcher import DefaulterNotifier
from .serializers import SendEmailsSerializer

logger = logging.getLogger(__name__)


def get_mail_pool():
    return apps.get_app_config('notifications').mail_pool


@api_view(['POST'])
def send_defaulter_emails_view(request):
    """Email every selected defaulter (student, parent on cc)"""
    defaulters = request.data.get('defaulters') if hasattr(request.data, 'get') else None
    if not isinstance(defaulters, list):
        return Response({"error": "Invalid payload"}, status=status.HTTP_400_BAD_REQUEST)

    serializer = SendEmailsSerializer(data={"defaulters": defaulters})
    if not serializer.is_valid():
        return Response({"error": "Invalid payload", "details": serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"send-defaulter-emails called, defaulters count={len(defaulters)}")
    report = DefaulterNotifier(get_mail_pool()).send(serializer.get_defaulters())
    return Response(report.as_dict(), status=status.HTTP_200_OK)
