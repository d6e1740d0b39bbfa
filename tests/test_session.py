"""Tests for the session store, wire protocol and sync hub."""

import asyncio
import json

import pytest

from jamsync.session.hub import ParticipantStatus, SessionHub
from jamsync.session.protocol import (
    BpmChange,
    ConductorAdvance,
    JoinSession,
    LineChanged,
    MemberLeft,
    ProtocolError,
    TransposeChange,
    parse_client_event,
)
from jamsync.session.store import SessionStore


class FakeConnection:
    """Collects every frame the hub sends to one participant."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise ConnectionError("peer gone")
        self.sent.append(data)

    def events(self, name):
        return [f for f in self.sent if f["event"] == name]


def _frame(event, **fields):
    return json.dumps({"event": event, **fields})


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TestSessionStore:
    def test_created_with_default_bpm(self):
        store = SessionStore()
        state = store.get_or_create("s1")
        assert (state.current_line_index, state.semitones, state.bpm) == (0, 0, 80)
        assert "s1" in store
        assert len(store) == 1

    def test_configured_default_bpm(self):
        assert SessionStore(default_bpm=100).get_or_create("s").bpm == 100

    def test_members_distinct_in_join_order(self):
        store = SessionStore()
        store.add_member("s", "c1", "A")
        store.add_member("s", "c2", "B")
        store.add_member("s", "c3", "A")
        assert store.get("s").members == ["A", "B"]
        store.remove_member("s", "c1")
        assert store.get("s").members == ["B", "A"]

    def test_remove_from_unknown_session_creates_nothing(self):
        store = SessionStore()
        assert store.remove_member("ghost", "c1") is None
        assert "ghost" not in store

    def test_setters(self):
        store = SessionStore()
        store.set_line("s", 7)
        store.set_transpose("s", -2)
        state = store.set_bpm("s", 132)
        assert state.snapshot() == {
            "currentLineIndex": 7,
            "semitones": -2,
            "bpm": 132,
            "members": [],
        }


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class TestProtocol:
    def test_parses_camel_case(self):
        event = parse_client_event(_frame("join_session", sessionId="s1", userId="A"))
        assert event == JoinSession(session_id="s1", user_id="A")

    def test_each_event_type(self):
        assert isinstance(
            parse_client_event({"event": "conductor_advance", "sessionId": "s", "lineIndex": 4}),
            ConductorAdvance,
        )
        assert isinstance(
            parse_client_event({"event": "transpose_change", "sessionId": "s", "semitones": -3}),
            TransposeChange,
        )
        assert isinstance(
            parse_client_event(b'{"event": "bpm_change", "sessionId": "s", "bpm": 96}'),
            BpmChange,
        )

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[1, 2]",
            _frame("dance", sessionId="s"),
            _frame("join_session", sessionId="s"),
            _frame("join_session", sessionId="s", userId=""),
            _frame("bpm_change", sessionId="s"),
            _frame("conductor_advance", sessionId="s", lineIndex="next"),
        ],
    )
    def test_rejects_invalid_frames(self, raw):
        with pytest.raises(ProtocolError):
            parse_client_event(raw)

    def test_server_events_on_the_wire(self):
        assert LineChanged(line_index=3).to_wire() == {"event": "line_changed", "lineIndex": 3}
        assert MemberLeft(participant_id="c1").to_wire() == {
            "event": "member_left",
            "participantId": "c1",
        }


# ---------------------------------------------------------------------------
# Hub
# ---------------------------------------------------------------------------


@pytest.fixture()
def hub():
    return SessionHub(SessionStore())


class TestSessionHub:
    def test_join_sequence(self, hub):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s1", userId="B"))

        asyncio.run(go())

        assert a.sent == [
            {"event": "session_state", "currentLineIndex": 0, "semitones": 0, "bpm": 80, "members": ["A"]},
            {"event": "member_joined", "userId": "B"},
        ]
        assert b.sent == [
            {"event": "session_state", "currentLineIndex": 0, "semitones": 0, "bpm": 80, "members": ["A", "B"]},
        ]

    def test_advance_reaches_everyone_including_sender(self, hub):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s1", userId="B"))
            await hub.receive(cb, _frame("conductor_advance", sessionId="s1", lineIndex=5))

        asyncio.run(go())

        assert a.events("line_changed") == [{"event": "line_changed", "lineIndex": 5}]
        assert b.events("line_changed") == [{"event": "line_changed", "lineIndex": 5}]
        assert hub.store.get("s1").current_line_index == 5

    def test_transpose_and_bpm_broadcast_state(self, hub):
        a = FakeConnection()

        async def go():
            ca = hub.connect(a)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(ca, _frame("transpose_change", sessionId="s1", semitones=3))
            await hub.receive(ca, _frame("bpm_change", sessionId="s1", bpm=120))

        asyncio.run(go())

        states = a.events("session_state")
        assert [(s["semitones"], s["bpm"]) for s in states] == [(0, 80), (3, 80), (3, 120)]

    def test_other_sessions_are_isolated(self, hub):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s2", userId="B"))
            await hub.receive(ca, _frame("conductor_advance", sessionId="s1", lineIndex=1))

        asyncio.run(go())
        assert b.events("line_changed") == []
        assert b.events("member_joined") == []

    def test_invalid_frame_answers_sender_only(self, hub):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s1", userId="B"))
            await hub.receive(ca, _frame("conductor_advance", sessionId="s1", lineIndex="next"))

        asyncio.run(go())

        assert len(a.events("error")) == 1
        assert hub.store.get("s1").current_line_index == 0
        assert hub.store.get("s1").bpm == 80

    @pytest.mark.parametrize("bpm", [0, -5])
    def test_non_positive_bpm_applies_and_broadcasts(self, hub, bpm):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s1", userId="B"))
            await hub.receive(ca, _frame("bpm_change", sessionId="s1", bpm=bpm))

        asyncio.run(go())

        assert a.events("error") == []
        assert a.events("session_state")[-1]["bpm"] == bpm
        assert b.events("session_state")[-1]["bpm"] == bpm
        assert hub.store.get("s1").bpm == bpm

    def test_disconnect_announces_member_left(self, hub):
        a, b = FakeConnection(), FakeConnection()

        async def go():
            ca, cb = hub.connect(a), hub.connect(b)
            await hub.receive(ca, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(cb, _frame("join_session", sessionId="s1", userId="B"))
            await hub.disconnect(cb)
            return cb

        cb = asyncio.run(go())

        assert a.events("member_left") == [{"event": "member_left", "participantId": cb}]
        assert hub.store.get("s1").members == ["A"]
        assert hub.status(cb) is ParticipantStatus.DISCONNECTED

    def test_status_lifecycle(self, hub):
        async def go():
            cid = hub.connect(FakeConnection())
            seen = [hub.status(cid)]
            await hub.receive(cid, _frame("join_session", sessionId="s1", userId="A"))
            seen.append(hub.status(cid))
            await hub.disconnect(cid)
            seen.append(hub.status(cid))
            return seen

        assert asyncio.run(go()) == [
            ParticipantStatus.CONNECTED,
            ParticipantStatus.JOINED,
            ParticipantStatus.DISCONNECTED,
        ]

    def test_failed_send_does_not_stop_broadcast(self, hub):
        broken, ok = FakeConnection(fail=True), FakeConnection()

        async def go():
            cx, co = hub.connect(broken), hub.connect(ok)
            await hub.receive(cx, _frame("join_session", sessionId="s1", userId="X"))
            await hub.receive(co, _frame("join_session", sessionId="s1", userId="O"))
            await hub.receive(co, _frame("conductor_advance", sessionId="s1", lineIndex=2))

        asyncio.run(go())
        assert ok.events("line_changed") == [{"event": "line_changed", "lineIndex": 2}]

    def test_unexpected_send_error_propagates(self, hub):
        class BrokenEncoder(FakeConnection):
            async def send_json(self, data):
                raise TypeError("not serializable")

        async def go():
            cid = hub.connect(BrokenEncoder())
            await hub.receive(cid, _frame("join_session", sessionId="s1", userId="A"))

        with pytest.raises(TypeError):
            asyncio.run(go())

    def test_concurrent_advances_converge(self, hub):
        conns = [FakeConnection() for _ in range(3)]

        async def go():
            ids = [hub.connect(c) for c in conns]
            for i, cid in enumerate(ids):
                await hub.receive(cid, _frame("join_session", sessionId="s1", userId=f"U{i}"))
            await asyncio.gather(
                hub.receive(ids[0], _frame("conductor_advance", sessionId="s1", lineIndex=5)),
                hub.receive(ids[1], _frame("conductor_advance", sessionId="s1", lineIndex=2)),
            )

        asyncio.run(go())

        final = hub.store.get("s1").current_line_index
        assert final == 2
        orders = [[f["lineIndex"] for f in c.events("line_changed")] for c in conns]
        assert orders[0] == orders[1] == orders[2]
        assert all(order[-1] == final for order in orders)

    def test_same_user_on_two_connections(self, hub):
        async def go():
            c1, c2 = hub.connect(FakeConnection()), hub.connect(FakeConnection())
            await hub.receive(c1, _frame("join_session", sessionId="s1", userId="A"))
            await hub.receive(c2, _frame("join_session", sessionId="s1", userId="A"))
            await hub.disconnect(c1)

        asyncio.run(go())
        assert hub.store.get("s1").members == ["A"]
