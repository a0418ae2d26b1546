"""Tests for the activity logger."""

from finvue.audit import ActivityLogger, ActivitySinkInterface
from finvue.models import ActivityLogBuilder, ActivityType, SYSTEM_USERNAME


class ListSink(ActivitySinkInterface):

    def __init__(self):
        self.entries = []

    def append_log(self, entry):
        self.entries.insert(0, entry)


class BrokenSink(ActivitySinkInterface):

    def append_log(self, entry):
        raise RuntimeError("sink down")


class TestActivityLogger:

    def test_log_hands_entry_to_sink(self):
        sink = ListSink()
        logger = ActivityLogger(sink)
        entry = ActivityLogBuilder.logged_out("admin")
        assert logger.log(entry) is True
        assert sink.entries == [entry]

    def test_no_sink_is_fine(self):
        assert ActivityLogger().log(ActivityLogBuilder.logged_out("admin")) is True

    def test_failing_sink_never_raises(self):
        logger = ActivityLogger(BrokenSink())
        assert logger.log(ActivityLogBuilder.logged_out("admin")) is False

    def test_record_defaults_to_system(self):
        sink = ListSink()
        entry = ActivityLogger(sink).record("Cloud Sync", "done", ActivityType.SYSTEM)
        assert entry.username == SYSTEM_USERNAME
        assert sink.entries[0] is entry

    def test_attach(self):
        sink = ListSink()
        logger = ActivityLogger()
        logger.attach(sink)
        logger.record("Logout", "bye", ActivityType.AUTH, username="eli")
        assert sink.entries[0].username == "eli"
