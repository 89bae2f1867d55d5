import unittest
from datetime import datetime, timedelta, timezone

import _env  # noqa: F401

from swipehire.core.reminder_store import clear_reminders
from swipehire.schemas.reminders import ReminderCreateRequest
from swipehire.services import reminder_service
from swipehire.services.reminder_service import ReminderError

USER_ID = "a" * 24
MATCH_ID = "b" * 24


def _request(**overrides) -> ReminderCreateRequest:
    data = {
        "user_id": USER_ID,
        "match_id": MATCH_ID,
        "reminder_type": "thank_you",
        "scheduled_at": datetime.now(timezone.utc) - timedelta(minutes=5),
        "job_title": "Backend Engineer",
        "company_name": "Acme",
    }
    data.update(overrides)
    return ReminderCreateRequest(**data)


class ReminderTemplateTests(unittest.TestCase):
    def test_filter_by_type(self):
        self.assertEqual(len(reminder_service.list_templates()), 3)
        templates = reminder_service.list_templates("status_inquiry")
        self.assertEqual([template.id for template in templates], ["2"])

    def test_render_replaces_every_placeholder(self):
        text = "{{jobTitle}} at {{companyName}}, again {{jobTitle}}"
        self.assertEqual(
            reminder_service.render_message(text, job_title="Engineer", company_name="Acme"),
            "Engineer at Acme, again Engineer",
        )


class ReminderLifecycleTests(unittest.TestCase):
    def setUp(self):
        clear_reminders()

    def test_create_and_list(self):
        reminder = reminder_service.create_reminder(_request())
        self.assertEqual(reminder.status, "pending")
        self.assertEqual(reminder.match.company_name, "Acme")

        self.assertEqual([r.id for r in reminder_service.get_user_reminders(USER_ID)], [reminder.id])
        self.assertEqual([r.id for r in reminder_service.get_match_reminders(USER_ID, MATCH_ID)], [reminder.id])
        self.assertEqual(reminder_service.get_user_reminders(USER_ID, status="sent"), [])

    def test_match_reminders_are_scoped_to_user(self):
        mine = reminder_service.create_reminder(_request())
        theirs = reminder_service.create_reminder(_request(user_id="c" * 24))

        self.assertEqual([r.id for r in reminder_service.get_match_reminders(USER_ID, MATCH_ID)], [mine.id])
        self.assertEqual([r.id for r in reminder_service.get_match_reminders("c" * 24, MATCH_ID)], [theirs.id])

    def test_duplicate_open_reminder_conflicts(self):
        reminder_service.create_reminder(_request())
        with self.assertRaises(ReminderError) as ctx:
            reminder_service.create_reminder(_request())
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.code, "DUPLICATE_REMINDER")

        # A different type for the same application is fine.
        reminder_service.create_reminder(_request(reminder_type="status_inquiry"))

    def test_validation_errors(self):
        with self.assertRaises(ReminderError) as ctx:
            reminder_service.create_reminder(_request(template_id="99"))
        self.assertEqual(ctx.exception.code, "UNKNOWN_TEMPLATE")

        with self.assertRaises(ReminderError) as ctx:
            reminder_service.create_reminder(_request(reminder_type="custom", custom_message="   "))
        self.assertEqual(ctx.exception.code, "MISSING_MESSAGE")

    def test_snooze_reschedules(self):
        reminder = reminder_service.create_reminder(_request())
        later = datetime.now(timezone.utc) + timedelta(days=2)
        snoozed = reminder_service.snooze_reminder(reminder.id, later)

        self.assertEqual(snoozed.status, "pending")
        self.assertEqual(snoozed.snooze_until, later)
        self.assertEqual(snoozed.scheduled_at, later)
        self.assertEqual(reminder_service.get_due_reminders(), [])

    def test_status_updates(self):
        reminder = reminder_service.create_reminder(_request())
        completed = reminder_service.update_status(reminder.id, "completed")
        self.assertEqual(completed.status, "completed")
        self.assertIsNotNone(completed.completed_at)

        with self.assertRaises(ReminderError) as ctx:
            reminder_service.update_status(reminder.id, "snoozed")
        self.assertEqual(ctx.exception.code, "MISSING_SNOOZE_DATE")

        with self.assertRaises(ReminderError) as ctx:
            reminder_service.update_status("missing", "cancelled")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_delete_requires_owner(self):
        reminder = reminder_service.create_reminder(_request())
        with self.assertRaises(ReminderError):
            reminder_service.delete_reminder(reminder.id, "c" * 24)
        reminder_service.delete_reminder(reminder.id, USER_ID)
        self.assertEqual(reminder_service.get_user_reminders(USER_ID), [])


class ReminderProcessingTests(unittest.TestCase):
    def setUp(self):
        clear_reminders()

    def test_process_due_marks_sent(self):
        due = reminder_service.create_reminder(_request())
        reminder_service.create_reminder(
            _request(reminder_type="follow_up", scheduled_at=datetime.now(timezone.utc) + timedelta(days=1))
        )

        result = reminder_service.process_due_reminders()
        self.assertEqual([item.reminder_id for item in result.processed], [due.id])
        notification = result.processed[0]
        self.assertEqual(notification.subject, "Send your thank-you note")
        self.assertIn("Backend Engineer position at Acme", notification.message)
        self.assertEqual(notification.link, f"/dashboard/applications/{MATCH_ID}")
        self.assertEqual(result.failed, [])

        sent = reminder_service.get_user_reminders(USER_ID, status="sent")
        self.assertEqual([r.id for r in sent], [due.id])
        self.assertIsNotNone(sent[0].sent_at)
        self.assertEqual(reminder_service.process_due_reminders().processed, [])

    def test_custom_message_uses_match_defaults(self):
        reminder = reminder_service.create_reminder(
            _request(
                reminder_type="custom",
                custom_message="Ping {{companyName}} about {{jobTitle}}",
                job_title=None,
                company_name=None,
            )
        )
        notification = reminder_service.build_notification(reminder)
        self.assertEqual(notification.subject, "Follow-up Reminder")
        self.assertEqual(notification.message, "Ping the company about the position")


if __name__ == "__main__":
    unittest.main()
