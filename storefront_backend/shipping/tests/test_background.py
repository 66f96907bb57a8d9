# shipping/tests/test_background.py

from unittest import mock

from django.test import TestCase, override_settings

from shipping.services.background import run_detached, schedule_after_commit


class BackgroundTaskTests(TestCase):
    def test_eager_task_runs_inline(self):
        task = mock.Mock()

        thread = run_detached(task, 1, name="unit", flag=True)

        self.assertIsNone(thread)
        task.assert_called_once_with(1, flag=True)

    def test_failing_task_is_logged_not_raised(self):
        task = mock.Mock(side_effect=RuntimeError("boom"))

        with self.assertLogs("shipping.services.background", level="ERROR"):
            run_detached(task, name="unit")

    def test_scheduled_task_waits_for_commit(self):
        task = mock.Mock()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            schedule_after_commit(task, "order-1", name="unit")
            task.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        task.assert_called_once_with("order-1")

    @override_settings(BACKGROUND_TASKS_EAGER=False)
    def test_detached_task_runs_on_named_thread(self):
        task = mock.Mock()

        with mock.patch("shipping.services.background.connection"):
            thread = run_detached(task, name="detached-unit")
            thread.join(timeout=5)

        self.assertEqual(thread.name, "detached-unit")
        task.assert_called_once_with()
