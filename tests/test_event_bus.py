"""EventBus tests"""

import pytest

from tavern.core.event_bus import MAX_DEPTH, DomainEvent, EventBus


def _event(event_type: str = "evt", source: str = "test", **data) -> DomainEvent:
    return DomainEvent(event_type=event_type, data=data, source=source)


class TestSubscribeEmit:
    def test_basic_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe("quest_completed", lambda e: received.append(e))
        bus.emit(_event("quest_completed", quest_id="q1"))
        assert len(received) == 1
        assert received[0].data["quest_id"] == "q1"

    def test_handlers_run_in_subscription_order(self):
        bus = EventBus()
        results = []
        bus.subscribe("evt", lambda e: results.append("a"))
        bus.subscribe("evt", lambda e: results.append("b"))
        bus.emit(_event())
        assert results == ["a", "b"]

    def test_no_handlers(self):
        EventBus().emit(_event("no_one_listens"))

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(e)  # noqa: E731
        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit(_event())
        assert received == []

    def test_unsubscribe_unknown_handler_is_ignored(self):
        bus = EventBus()
        bus.subscribe("evt", lambda e: None)
        bus.unsubscribe("evt", lambda e: None)
        assert bus.handler_count == 1


class TestDepthLimit:
    def test_max_depth_stops_feedback_loops(self):
        bus = EventBus()
        call_count = 0

        def recursive_handler(event: DomainEvent):
            nonlocal call_count
            call_count += 1
            # fresh source each time so only the depth guard applies
            bus.emit(_event("chain", source=f"handler_{call_count}"))

        bus.subscribe("chain", recursive_handler)
        bus.emit(_event("chain", source="origin"))
        assert call_count == MAX_DEPTH


class TestDuplicatePrevention:
    def test_same_source_same_event_blocked_within_chain(self):
        bus = EventBus()
        count = 0

        def handler(event: DomainEvent):
            nonlocal count
            count += 1
            bus.emit(_event(source="same_source"))

        bus.subscribe("evt", handler)
        bus.emit(_event(source="same_source"))
        assert count == 1

    def test_top_level_emits_start_new_chains(self):
        """Two completions in one request both reach the handlers"""
        bus = EventBus()
        received = []
        bus.subscribe("quest_completed", lambda e: received.append(e.data["quest_id"]))
        bus.emit(_event("quest_completed", source="quest_service", quest_id="q1"))
        bus.emit(_event("quest_completed", source="quest_service", quest_id="q2"))
        assert received == ["q1", "q2"]

    def test_different_source_allowed(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", lambda e: received.append(e.source))
        bus.emit(_event(source="source_a"))
        bus.emit(_event(source="source_b"))
        assert received == ["source_a", "source_b"]


class TestHandlerError:
    def test_handler_exception_doesnt_stop_others(self):
        bus = EventBus()
        results = []

        def bad_handler(e):
            raise ValueError("boom")

        bus.subscribe("evt", bad_handler)
        bus.subscribe("evt", lambda e: results.append("ok"))
        bus.emit(_event())
        assert results == ["ok"]

    def test_depth_restored_after_handler_error(self):
        bus = EventBus()
        received = []

        def bad_handler(e):
            raise RuntimeError("boom")

        bus.subscribe("a", bad_handler)
        bus.subscribe("b", lambda e: received.append(e.event_type))
        bus.emit(_event("a"))
        bus.emit(_event("b"))
        assert received == ["b"]


class TestClear:
    def test_clear_removes_all(self):
        bus = EventBus()
        bus.subscribe("a", lambda e: None)
        bus.subscribe("b", lambda e: None)
        assert bus.handler_count == 2
        bus.clear()
        assert bus.handler_count == 0


class TestDomainEvent:
    def test_chain_key(self):
        assert _event("quest_completed", source="quest_service").chain_key == (
            "quest_service:quest_completed"
        )

    def test_payload_must_be_scalars(self):
        with pytest.raises(TypeError, match="quest_completed.quest"):
            _event("quest_completed", quest=object())

    def test_scalar_payload_accepted(self):
        event = _event(quest_id="q1", xp_awarded=200, ranked_up=False, deadline=None)
        assert event.data["xp_awarded"] == 200


class TestChainState:
    def test_emit_reports_dropped_events(self):
        bus = EventBus()
        outcomes = []

        def handler(event: DomainEvent):
            outcomes.append(bus.emit(_event(source="same_source")))

        bus.subscribe("evt", handler)
        assert bus.emit(_event(source="same_source")) is True
        assert outcomes == [False]

    def test_chain_is_visible_while_handlers_run(self):
        bus = EventBus()
        seen = []
        bus.subscribe("evt", lambda e: seen.append((bus.in_chain, bus.chain_keys, e.depth)))

        bus.emit(_event(source="origin"))

        assert seen == [(True, frozenset({"origin:evt"}), 0)]
        assert bus.in_chain is False

    def test_nested_emit_records_depth(self):
        bus = EventBus()
        depths = []
        bus.subscribe("outer", lambda e: bus.emit(_event("inner", source="handler")))
        bus.subscribe("inner", lambda e: depths.append(e.depth))
        bus.emit(_event("outer"))
        assert depths == [1]
