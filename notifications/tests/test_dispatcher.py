import smtplib
from unittest import mock

import pytest
from django.core import mail

from notifications.dispatcher import Defaulter, DefaulterNotifier, describe_error
from notifications.mailer import MailConnectionPool

LOCMEM = 'django.core.mail.backends.locmem.EmailBackend'


@pytest.fixture
def defaulters():
    return [
        Defaulter(roll_number='102', name='B', gender='Female', attendance_percentage=66.67,
                  student_email='b@student.edu', parent_email='b.parent@email.com', class_name='Physics'),
        Defaulter(roll_number='103', name='C', gender='Male', attendance_percentage=40.0,
                  student_email='c@student.edu', parent_email='c.parent@email.com', class_name='Physics'),
    ]


def stub_pool(connection):
    return MailConnectionPool(
        host='smtp.gmail.com', username='alerts@school.edu', password='app-password',
        endpoints=[{'port': 465, 'use_ssl': True}],
        connection_factory=mock.Mock(return_value=connection),
    )


def test_simulation_without_credentials(defaulters):
    factory = mock.Mock()
    pool = MailConnectionPool(endpoints=[{'port': 465}], connection_factory=factory)

    report = DefaulterNotifier(pool).send(defaulters).as_dict()

    assert report['success'] is True
    assert report['simulated'] is True
    assert report['sent'] == 2
    assert report['total'] == 2
    assert report['results'][0] == {
        "success": True, "email": "b@student.edu", "message": "Email simulated for B",
    }
    assert 'EMAIL_USER' in report['message']
    factory.assert_not_called()


def test_failed_send_does_not_stop_the_batch(defaulters):
    connection = mock.Mock()
    connection.send_messages.side_effect = [
        smtplib.SMTPRecipientsRefused({'b@student.edu': (550, b'No such user')}),
        1,
    ]

    report = DefaulterNotifier(stub_pool(connection), from_email='alerts@school.edu').send(defaulters)

    assert report.simulated is False
    assert report.sent == 1
    assert report.total == 2
    failed, delivered = report.results
    assert failed['success'] is False
    assert failed['email'] == 'b@student.edu'
    assert failed['error']['response'] == {'b@student.edu': [550, 'No such user']}
    assert delivered['success'] is True
    assert delivered['message'].startswith('Sent: <')
    assert connection.send_messages.call_count == 2


def test_rejected_message_counts_as_failure(defaulters):
    connection = mock.Mock()
    connection.send_messages.return_value = 0

    report = DefaulterNotifier(stub_pool(connection)).send(defaulters[:1])

    assert report.sent == 0
    assert report.results[0]['success'] is False


def test_defaulter_without_any_address(defaulters):
    connection = mock.Mock()
    nobody = Defaulter(name='Nobody', attendance_percentage=10.0)

    report = DefaulterNotifier(stub_pool(connection)).send([nobody, defaulters[0]])

    assert report.sent == 1
    assert report.results[0]['success'] is False
    assert report.results[0]['error']['message'] == 'No recipient address'
    connection.send_messages.assert_called_once()


def test_sends_student_with_parent_on_cc(defaulters):
    pool = MailConnectionPool(
        host='localhost', username='alerts@school.edu', password='app-password',
        endpoints=[{'port': 465, 'use_ssl': True}], backend=LOCMEM,
    )

    report = DefaulterNotifier(pool, from_email='alerts@school.edu').send(defaulters)

    assert report.sent == 2
    assert len(mail.outbox) == 2
    message = mail.outbox[0]
    assert message.subject == 'Attendance Alert - Low Attendance Warning'
    assert message.to == ['b@student.edu']
    assert message.cc == ['b.parent@email.com']
    assert message.from_email == 'alerts@school.edu'
    assert '66.67%' in message.body
    html, mimetype = message.alternatives[0]
    assert mimetype == 'text/html'
    assert '66.67%' in html
    assert 'Dear B' in html
    assert message.extra_headers['Message-ID'] in report.results[0]['message']


def test_threshold_in_message(defaulters):
    pool = MailConnectionPool(
        username='u', password='p', endpoints=[{'port': 587, 'use_tls': True}], backend=LOCMEM,
    )

    DefaulterNotifier(pool, threshold=80).send(defaulters[:1])

    assert 'threshold of 80%' in mail.outbox[0].body


def test_describe_smtp_response_error():
    error = describe_error(smtplib.SMTPAuthenticationError(535, b'5.7.8 Username and Password not accepted'))

    assert error['code'] == 535
    assert error['response'] == '5.7.8 Username and Password not accepted'
