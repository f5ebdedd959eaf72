from __future__ import annotations

import logging

from utils.logging_setup import SafeExtraFormatter


def test_missing_extras_are_filled_with_dashes():
    formatter = SafeExtraFormatter(fmt="%(message)s batch_id=%(batch_id)s record_id=%(record_id)s step=%(step)s")
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "hello", None, None)
    assert formatter.format(record) == "hello batch_id=- record_id=- step=-"


def test_given_extras_are_kept():
    formatter = SafeExtraFormatter(fmt="%(message)s batch_id=%(batch_id)s status=%(status)s")
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "hello", None, None)
    record.batch_id = "b1"
    assert formatter.format(record) == "hello batch_id=b1 status=-"
