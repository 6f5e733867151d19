"""
Mail connection pool.

Holds the single verified mail connection used for defaulter alerts. The
pool is verified once, on first use, by opening a connection to each
configured endpoint in order (implicit TLS on 465, then STARTTLS on 587).
The first endpoint that accepts the login is kept for the lifetime of the
pool. Without credentials, or when every endpoint fails, the pool switches
to simulation mode and hands out no connection at all.

Configure in settings.py:
EMAIL_HOST = 'smtp.gmail.com'
EMAIL_HOST_USER = 'your_address'
EMAIL_HOST_PASSWORD = 'your_app_password'
EMAIL_ENDPOINTS = [{'port': 465, 'use_ssl': True, ...}, ...]
"""

import logging
import smtplib
import threading

from django.conf import settings
from django.core.mail import get_connection

logger = logging.getLogger(__name__)


class PoolState:
    UNCONFIGURED = 'unconfigured'
    VERIFYING = 'verifying'
    READY = 'ready'
    SIMULATING = 'simulating'


class MailConnectionPool:
    def __init__(self, host='', username='', password='', endpoints=None, backend=None,
                 timeout=None, connection_factory=get_connection):
        self.host = host
        self.username = username
        self.password = password
        self.endpoints = list(endpoints or [])
        self.backend = backend
        self.timeout = timeout
        self.connection_factory = connection_factory
        self.state = PoolState.UNCONFIGURED
        self.endpoint = None
        # endpoint label -> verification error, kept once every endpoint has failed
        self.failures = {}
        self._connection = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, **overrides):
        options = {
            'host': settings.EMAIL_HOST,
            'username': settings.EMAIL_HOST_USER,
            'password': settings.EMAIL_HOST_PASSWORD,
            'endpoints': getattr(settings, 'EMAIL_ENDPOINTS', []),
            'backend': settings.EMAIL_BACKEND,
            'timeout': getattr(settings, 'EMAIL_TIMEOUT', None),
        }
        options.update(overrides)
        return cls(**options)

    @property
    def configured(self):
        return bool(self.username and self.password)

    @property
    def failed(self):
        return bool(self.failures)

    @property
    def simulated(self):
        return self.state == PoolState.SIMULATING

    def acquire(self):
        """Return the verified connection, or None in simulation mode."""
        with self._lock:
            if self.state == PoolState.READY:
                return self._connection
            if self.state == PoolState.SIMULATING:
                return None

            if not self.configured:
                logger.warning(
                    "Mail transport not configured: EMAIL_USER or EMAIL_PASS missing. Running in simulation mode."
                )
                self.state = PoolState.SIMULATING
                return None

            self.state = PoolState.VERIFYING
            failures = {}
            for endpoint in self.endpoints:
                label = f"{self.host}:{endpoint['port']} ({endpoint.get('label', '')})"
                connection = self._build_connection(endpoint)
                try:
                    connection.open()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Mail transport verification failed for {label}: {e}")
                    failures[label] = str(e)
                    continue
                # Sends open their own session; the verified settings are what is kept.
                connection.close()

                self._connection = connection
                self.endpoint = label
                self.state = PoolState.READY
                logger.info(f"Mail transport ready (SMTP -> {label}) for {self.username}")
                return connection

            self.failures = failures
            logger.error("All mail transport verification attempts failed. Mail will run in simulation mode.")
            self.state = PoolState.SIMULATING
            return None

    def _build_connection(self, endpoint):
        return self.connection_factory(
            backend=self.backend,
            fail_silently=False,
            host=self.host,
            port=endpoint['port'],
            username=self.username,
            password=self.password,
            use_ssl=endpoint.get('use_ssl', False),
            use_tls=endpoint.get('use_tls', False),
            timeout=self.timeout,
        )

