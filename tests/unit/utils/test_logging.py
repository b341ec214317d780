import sys
import json
import logging

from linkshortener.utils.logging import JsonFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name='linkshortener.services.sweeper',
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='Deleted %s links.',
        args=(3,),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_renders_message_and_extras() -> None:
    record = make_record(event='SWEEP_COMPLETED', records_deleted=3)

    log = json.loads(JsonFormatter().format(record))

    assert log['level'] == 'INFO'
    assert log['logger'] == 'linkshortener.services.sweeper'
    assert log['message'] == 'Deleted 3 links.'
    assert log['event'] == 'SWEEP_COMPLETED'
    assert log['records_deleted'] == 3
    assert log['timestamp'].endswith('Z')
    assert 'msg' not in log and 'args' not in log


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError('boom')
    except ValueError:
        record = make_record()
        record.exc_info = sys.exc_info()

    log = json.loads(JsonFormatter().format(record))

    assert 'ValueError: boom' in log['exception']


def test_json_formatter_serializes_unknown_types() -> None:
    record = make_record(client=object())

    log = json.loads(JsonFormatter().format(record))

    assert log['client'].startswith('<object object')
