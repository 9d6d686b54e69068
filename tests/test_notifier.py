"""
Tests for change notice formatting and delivery.
"""
import smtplib
import unittest
from unittest import mock

from lookout.utils.notifier import MailSink, Notifier, format_notice, trunc_pad


class TestFormat(unittest.TestCase):

    def test_short_path_padded(self):
        self.assertEqual(trunc_pad("/a/b", 8), "/a/b    ")

    def test_long_path_left_truncated(self):
        out = trunc_pad("/very/long/path/file.mxf", 10)
        self.assertEqual(len(out), 10)
        self.assertEqual(out, "…/file.mxf")

    def test_exact_width_unchanged(self):
        self.assertEqual(trunc_pad("abcd", 4), "abcd")

    def test_notice_line(self):
        self.assertEqual(format_notice("+", "/x.mxf", "new file", 8), "+ /x.mxf   new file")


class _FailingSink:
    def __call__(self, lines):
        raise smtplib.SMTPServerDisconnected("gone")


class TestNotifier(unittest.TestCase):

    def test_failed_delivery_keeps_queue(self):
        notifier = Notifier(width=16, sinks=[_FailingSink()])
        notifier.new_file("/a.mxf")
        notifier.deleted("/b.mxf")
        self.assertFalse(notifier.flush())
        self.assertEqual(len(notifier.pending), 2)

    def test_successful_delivery_clears_queue(self):
        seen = []
        notifier = Notifier(width=16, sinks=[seen.extend])
        notifier.size_changed("/a.mxf")
        self.assertTrue(notifier.flush())
        self.assertEqual(notifier.pending, [])
        self.assertEqual(seen, ["~ " + "/a.mxf".ljust(16) + " size changed"])

    def test_empty_queue_calls_no_sink(self):
        sink = mock.Mock()
        self.assertTrue(Notifier(sinks=[sink]).flush())
        sink.assert_not_called()


class TestMailSink(unittest.TestCase):

    def test_sends_one_message(self):
        with mock.patch("lookout.utils.notifier.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            sink = MailSink("smtp.example.com", 587, mail_from="watch@example.com",
                            mail_to=["ops@example.com", "dev@example.com"], subject="changes",
                            user="watch", password="secret", starttls=True)
            sink(["+ /a.mxf new file", "- /b.mxf deleted"])

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
        smtp.starttls.assert_called_once_with()
        smtp.login.assert_called_once_with("watch", "secret")
        msg = smtp.send_message.call_args[0][0]
        self.assertEqual(msg["To"], "ops@example.com, dev@example.com")
        self.assertEqual(msg["Subject"], "changes")
        self.assertIn("- /b.mxf deleted", msg.get_content())


if __name__ == "__main__":
    unittest.main()
