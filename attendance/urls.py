from django.urls import path

from .views import (
    AnalysisAPI, UploadAPI, batch_list, download_template, export_batch, history_list, latest_batch,
)

urlpatterns = [
    path('upload/', UploadAPI.as_view(), name='upload'),
    path('analysis/<int:batch_id>/', AnalysisAPI.as_view(), name='analysis'),
    path('analysis/<int:batch_id>/export/', export_batch, name='analysis-export'),
    path('batches/', batch_list, name='batch-list'),
    path('batches/latest/', latest_batch, name='batch-latest'),
    path('history/', history_list, name='history'),
    path('template/', download_template, name='template'),
]
