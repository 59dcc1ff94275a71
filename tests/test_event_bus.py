from __future__ import annotations

from analyst.event_bus import (
    DEBUG,
    ERROR_LOG,
    TOOL_CALL,
    USER_MESSAGE,
    EventBus,
    get_event_bus,
)
from analyst.logging import (
    attach_log_file,
    log_error,
    log_tool_result,
    set_session_id,
    setup_logging,
)


def test_emit_assigns_ids_and_default_summary() -> None:
    bus = EventBus()

    first = bus.emit(DEBUG)
    second = bus.emit(TOOL_CALL, summary="call", data={"tool_name": "x"})

    assert first.id == "evt_0001"
    assert first.summary == DEBUG
    assert second.id == "evt_0002"
    assert second.data == {"tool_name": "x"}
    assert len(bus) == 2


def test_failing_listener_does_not_break_emit() -> None:
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("listener bug")

    bus.subscribe(broken)
    bus.subscribe(seen.append)
    bus.emit(DEBUG, summary="still delivered")

    assert [e.summary for e in seen] == ["still delivered"]


def test_get_events_filters() -> None:
    bus = EventBus()
    bus.emit(DEBUG)
    bus.emit(TOOL_CALL)
    bus.emit(DEBUG)

    assert [e.type for e in bus.get_events(types={TOOL_CALL})] == [TOOL_CALL]
    assert len(bus.get_events(since_index=1)) == 2
    bus.clear()
    assert bus.get_events() == []


def test_unsubscribe() -> None:
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append)
    bus.unsubscribe(seen.append)
    bus.unsubscribe(seen.append)

    bus.emit(DEBUG)

    assert seen == []


def test_log_error_includes_traceback(event_bus) -> None:
    try:
        raise ValueError("bad value")
    except ValueError as e:
        log_error("Parsing failed", exc=e, context={"file": "x.csv"})

    [event] = event_bus.get_events(types={ERROR_LOG})
    assert event.level == "error"
    assert event.data == {"short": "Parsing failed", "context": {"file": "x.csv"}}
    assert "file: x.csv" in event.summary
    assert "ValueError: bad value" in event.summary


def test_log_tool_result_error_level(event_bus) -> None:
    log_tool_result("compute_stats", {"error": "nope"}, success=False)

    [event] = event_bus.get_events()
    assert event.level == "warning"
    assert event.data["error"] == "nope"


def test_events_reach_session_log_file(event_bus) -> None:
    logger = setup_logging(verbose=False)
    try:
        set_session_id("sess1")
        path = attach_log_file("sess1")
        get_event_bus().emit(USER_MESSAGE, level="info", summary="[User] hello there")

        content = path.read_text(encoding="utf-8")
        assert path.name == "session_sess1.log"
        assert "[User] hello there" in content
        assert "| sess1 |" in content
        assert "user_message" in content
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
