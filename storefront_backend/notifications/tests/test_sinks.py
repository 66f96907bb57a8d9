# notifications/tests/test_sinks.py

from unittest import mock

from django.core import mail
from django.test import TestCase

from notifications.models import Notification
from notifications.services.sinks import EmailSink, NotificationSink
from orders.tests.fakes import make_store


class NotificationSinkTests(TestCase):
    def setUp(self):
        self.store = make_store()
        self.sink = NotificationSink()

    def test_records_dashboard_alert(self):
        notification = self.sink.notify(
            Notification.TYPE_NEW_ORDER,
            {"store_id": self.store.id, "title": "New order", "metadata": {"order_id": "x"}},
        )

        self.assertIsNotNone(notification)
        self.assertEqual(notification.priority, Notification.PRIORITY_NORMAL)
        self.assertFalse(notification.read)
        self.assertEqual(notification.metadata, {"order_id": "x"})

    def test_missing_store_is_dropped(self):
        self.assertIsNone(self.sink.notify(Notification.TYPE_NEW_ORDER, {"title": "x"}))
        self.assertFalse(Notification.objects.exists())

    def test_write_failure_is_logged_not_raised(self):
        with mock.patch.object(Notification.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertLogs("notifications.services.sinks", level="ERROR"):
                result = self.sink.notify(Notification.TYPE_NEW_ORDER, {"store_id": self.store.id})

        self.assertIsNone(result)


class EmailSinkTests(TestCase):
    def setUp(self):
        self.sink = EmailSink()

    def test_renders_template_and_sends(self):
        sent = self.sink.send(
            "order_delivered",
            {"to": "asha@example.com", "order_number": "ORD-1-ABCDE", "store_name": "Test Store"},
        )

        self.assertTrue(sent)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Order ORD-1-ABCDE delivered")
        self.assertIn("Test Store", mail.outbox[0].body)

    def test_no_recipient_is_skipped(self):
        self.assertFalse(self.sink.send("order_delivered", {"to": "", "order_number": "ORD-1"}))
        self.assertEqual(len(mail.outbox), 0)

    def test_send_failure_is_logged_not_raised(self):
        with mock.patch("notifications.services.sinks.send_mail", side_effect=OSError("smtp down")):
            with self.assertLogs("notifications.services.sinks", level="ERROR"):
                sent = self.sink.send("order_delivered", {"to": "a@example.com", "order_number": "ORD-1"})

        self.assertFalse(sent)

    def test_unknown_template_is_logged_not_raised(self):
        with self.assertLogs("notifications.services.sinks", level="ERROR"):
            self.assertFalse(self.sink.send("no_such_template", {"to": "a@example.com"}))
