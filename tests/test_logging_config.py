import json
import logging
import unittest

from hotledger.logging_config import AuditLogger, StructuredFormatter, get_request_id, set_request_id


class _Capture(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestStructuredLogging(unittest.TestCase):

    def setUp(self):
        self.handler = _Capture()
        self.logger = logging.getLogger("hotledger.audit.test")
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.DEBUG)
        self.audit = AuditLogger("hotledger.audit.test")

    def tearDown(self):
        self.logger.removeHandler(self.handler)
        set_request_id("")

    def test_request_id_round_trip(self):
        self.assertEqual(set_request_id("abc"), "abc")
        self.assertEqual(get_request_id(), "abc")
        self.assertTrue(set_request_id())

    def test_emergency_withdraw_is_warning_with_fields(self):
        set_request_id("req-1")
        self.audit.emergency_withdraw("0xowner", "0xsafe", 10 ** 30, 123)
        record = self.handler.records[-1]
        self.assertEqual(record.levelno, logging.WARNING)
        self.assertEqual(record.extra_fields["event_type"], "EMERGENCY_WITHDRAW")
        self.assertEqual(record.extra_fields["request_id"], "req-1")

        line = json.loads(StructuredFormatter().format(record))
        self.assertEqual(line["request_id"], "req-1")
        self.assertEqual(line["owner"], "0xowner")

    def test_rejection_logged(self):
        self.audit.operation_rejected("transfer", "NO_ROUTE", "0xabc", "no route")
        fields = self.handler.records[-1].extra_fields
        self.assertEqual(fields["event_type"], "OPERATION_REJECTED")
        self.assertEqual(fields["failure_code"], "NO_ROUTE")


if __name__ == "__main__":
    unittest.main()
