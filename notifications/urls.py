from django.urls import path

from .views import send_defaulter_emails_view

urlpatterns = [
    path('send-defaulter-emails/', send_defaulter_emails_view, name='send-defaulter-emails'),
]
