import logging

from django.http import HttpResponse, JsonResponse
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from .analysis import analyze
from .classification import classify
from .exceptions import BatchNotFound, SpreadsheetParseError, StorageError
from .parsers import find_incomplete_rows, parse_attendance_file
from .serializers import (
    AnalysisSerializer, ScanHistorySerializer, UploadBatchSerializer, UploadSerializer,
)
from .spreadsheets import XLSX_CONTENT_TYPE, build_batch_workbook, build_template_workbook
from .store import get_store

logger = logging.getLogger(__name__)

SERVER_ERROR = {"error": "Server error"}


class UploadAPI(APIView):
    """
    Upload one class's attendance.

    Accepts either JSON ``{"records": [...], "className": "..."}`` or a
    multipart form with a spreadsheet in field ``file`` and an optional
    ``className``.
    """
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def post(self, request):
        uploaded = request.FILES.get("file")
        if uploaded:
            try:
                rows = parse_attendance_file(uploaded)
            except SpreadsheetParseError as e:
                return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
            incomplete = find_incomplete_rows(rows)
            if incomplete:
                return Response(
                    {"error": "Some records have missing required fields", "rows": incomplete},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            class_name = request.data.get("className", "")
        else:
            serializer = UploadSerializer(data=request.data)
            if not serializer.is_valid():
                errors = serializer.errors
                if "records" in errors:
                    return Response(
                        {"error": "No records provided", "details": errors},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                return Response({"error": "Invalid payload", "details": errors}, status=status.HTTP_400_BAD_REQUEST)
            rows = serializer.get_rows()
            class_name = serializer.validated_data.get("class_name")

        if not rows:
            return Response({"error": "No records provided"}, status=status.HTTP_400_BAD_REQUEST)

        summary, records = classify(rows, class_name)
        try:
            batch_id = get_store().create_batch(summary, records)
        except StorageError:
            logger.exception("Failed to store uploaded batch")
            return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"id": batch_id}, status=status.HTTP_200_OK)


class AnalysisAPI(APIView):
    def get(self, request, batch_id):
        try:
            report = analyze(batch_id, get_store())
        except BatchNotFound:
            return Response({"error": "Batch not found"}, status=status.HTTP_404_NOT_FOUND)
        except StorageError:
            logger.exception(f"Failed to load analysis for batch {batch_id}")
            return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(AnalysisSerializer(report).data)


@api_view(['GET'])
def latest_batch(request):
    """Id of the most recent upload, or null"""
    try:
        batch_id = get_store().get_latest_batch_id()
    except StorageError:
        logger.exception("Failed to load latest batch")
        return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if batch_id is None:
        # JSON null, not an empty body
        return JsonResponse(None, safe=False)
    return Response({"id": batch_id})


@api_view(['GET'])
def batch_list(request):
    try:
        batches = get_store().list_batches()
    except StorageError:
        logger.exception("Failed to list batches")
        return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(UploadBatchSerializer(batches, many=True).data)


@api_view(['GET'])
def history_list(request):
    try:
        entries = get_store().list_history()
    except StorageError:
        logger.exception("Failed to list scan history")
        return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(ScanHistorySerializer(entries, many=True).data)


@api_view(['GET'])
def download_template(request):
    """Download the Excel upload template"""
    response = HttpResponse(build_template_workbook(), content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = 'attachment; filename="attendance_template.xlsx"'
    return response


@api_view(['GET'])
def export_batch(request, batch_id):
    """Export a batch's records to Excel"""
    store = get_store()
    try:
        batch = store.get_batch(batch_id)
        records = store.get_records(batch_id)
    except BatchNotFound:
        return Response({"error": "Batch not found"}, status=status.HTTP_404_NOT_FOUND)
    except StorageError:
        logger.exception(f"Failed to export batch {batch_id}")
        return Response(SERVER_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    response = HttpResponse(build_batch_workbook(batch, records), content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="attendance_batch_{batch_id}.xlsx"'
    return response
