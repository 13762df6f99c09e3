from triage.data.audit_log import AuditLog


def test_lines_are_sequenced():
    log = AuditLog()
    first = log.append("> one")
    second = log.append("> two")

    assert (first.sequence, second.sequence) == (1, 2)
    assert log.lines() == ("> one", "> two")
    assert log.last_line() == "> two"
    assert log.last_sequence == 2


def test_get_since_returns_unseen_lines():
    log = AuditLog()
    for i in range(5):
        log.append(f"> line {i}")

    entries, truncated = log.get_since(3)

    assert [e.line for e in entries] == ["> line 3", "> line 4"]
    assert truncated is False


def test_bounded_log_drops_oldest_and_reports_truncation():
    log = AuditLog(max_lines=3)
    for i in range(5):
        log.append(f"> line {i}")

    assert len(log) == 3
    assert log.lines() == ("> line 2", "> line 3", "> line 4")

    entries, truncated = log.get_since(0)
    assert [e.sequence for e in entries] == [3, 4, 5]
    assert truncated is True

    _, truncated = log.get_since(2)
    assert truncated is False


def test_empty_log():
    log = AuditLog()
    assert log.last_line() is None
    assert log.get_since(0) == ([], False)


def test_line_appended_signal():
    log = AuditLog()
    seen = []
    log.line_appended.connect(lambda entry: seen.append(entry.line))
    log.append("> hello")
    assert seen == ["> hello"]
