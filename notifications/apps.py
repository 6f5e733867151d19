from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'notifications'
    verbose_name = 'Defaulter Notifications'

    def ready(self):
        from .mailer import MailConnectionPool

        # Verified lazily on the first dispatch and kept for the process.
        self.mail_pool = MailConnectionPool.from_settings()
