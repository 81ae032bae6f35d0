import asyncio

import pytest

from quizcast.connections import Connection, new_voter_id
from quizcast.constants import AUDIENCE_HOSTS, ROLE_HOST, ROLE_PLAYER
from quizcast.room import Room
from quizcast.state import RoomStore


class TestRoomStore:
    def test_get_or_create_returns_shared_instance(self, store):
        first = store.get_or_create("R1")
        second = store.get_or_create("R1")
        assert first is second
        first.upsert_quiz({"id": "q1"})
        assert "q1" in second.quizzes

    def test_get_does_not_create(self, store):
        assert store.get("missing") is None
        assert "missing" not in store
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_concurrent_first_reference_yields_one_room(self, store):
        async def grab():
            await asyncio.sleep(0)
            return store.get_or_create("RACE")

        results = await asyncio.gather(*(grab() for _ in range(50)))
        assert all(room is results[0] for room in results)
        assert len(store) == 1

    def test_rooms_inherit_store_audience(self):
        store = RoomStore(audience=AUDIENCE_HOSTS)
        assert store.get_or_create("R1").audience == AUDIENCE_HOSTS


class TestMembership:
    def test_add_player_and_host(self, store, connect):
        room = store.get_or_create("R1")
        host, _ = connect()
        player, _ = connect()
        room.add_host(host)
        assert room.add_player(player) == 1
        assert host.role == ROLE_HOST and host.room_id == "R1"
        assert player.role == ROLE_PLAYER and player.room_id == "R1"

    def test_rejoin_switches_role_within_room(self, store, connect):
        room = store.get_or_create("R1")
        conn, _ = connect()
        room.add_player(conn)
        room.add_host(conn)
        assert conn in room.hosts
        assert conn not in room.players

    def test_disconnect_removes_from_every_room(self, store, registry, connect):
        conn, _ = connect()
        a = store.get_or_create("A")
        b = store.get_or_create("B")
        a.add_host(conn)
        b.add_player(conn)

        left = registry.disconnect(conn)
        assert left == [b]
        assert conn not in a.hosts
        assert conn not in b.players
        assert len(registry) == 0

    def test_disconnect_is_idempotent(self, registry, connect):
        conn, _ = connect()
        registry.disconnect(conn)
        assert registry.disconnect(conn) == []

    def test_disconnect_without_room_is_noop(self, registry, connect):
        conn, _ = connect()
        assert registry.disconnect(conn) == []
        assert conn.state == "unassociated"

    def test_voter_ids_are_full_width_and_unique(self, registry, connect):
        ids = {connect()[0].voter_id for _ in range(500)}
        assert len(ids) == 500
        assert all(len(v) == 32 for v in ids)
        assert len(new_voter_id()) == 32

    def test_departed_voter_id_is_not_reissued(self, store, registry, connect):
        room = store.get_or_create("R1")
        gone, _ = connect()
        room.record_vote("q1", gone.voter_id, "A")
        registry.disconnect(gone)

        fresh, _ = connect()
        assert fresh.voter_id != gone.voter_id
        _, counts = room.record_vote("q1", fresh.voter_id, "B")
        assert counts == {"A": 1, "B": 1}

    def test_host_taking_over_from_player_seat_reports_it(self, store, connect):
        room = store.get_or_create("R1")
        conn, _ = connect()
        room.add_player(conn)
        assert room.add_host(conn) is True
        assert room.add_host(conn) is False

    def test_subscribe_host_moves_player_out_of_player_set(self, store, connect):
        room = store.get_or_create("R1")
        conn, _ = connect()
        room.add_player(conn)
        assert room.subscribe_host(conn) is True
        assert conn in room.hosts and conn not in room.players
        assert conn.role == ROLE_PLAYER


class TestTallies:
    def test_reset_of_unknown_quiz_does_not_create_it(self):
        room = Room("R1")
        assert room.reset_quiz("nope") == {}
        assert room.counts_snapshot("nope") == {}
        assert room.quizzes == {}

    def test_vote_for_unknown_quiz_creates_placeholder(self):
        room = Room("R1")
        choice, counts = room.record_vote("q9", "voter", "A")
        assert choice == "A"
        assert counts == {"A": 1}
        assert room.quizzes["q9"].definition == {"id": "q9"}

    def test_activate_with_reset_clears_tally(self):
        room = Room("R1")
        room.upsert_quiz({"id": "q1", "title": "t"})
        room.record_vote("q1", "v", "A")
        definition, counts = room.activate_quiz("q1")
        assert counts == {"A": 1}
        definition, counts = room.activate_quiz("q1", reset=True)
        assert definition == {"id": "q1", "title": "t"}
        assert counts == {}


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_broadcast_reaches_hosts_and_players(self, store, registry, connect):
        room = store.get_or_create("R1")
        host, host_ws = connect()
        player, player_ws = connect()
        room.add_host(host)
        room.add_player(player)

        assert room.broadcast({"type": "ping"}) == 2
        await registry.drain()
        assert host_ws.last("ping") == {"type": "ping"}
        assert player_ws.last("ping") == {"type": "ping"}

    @pytest.mark.asyncio
    async def test_hosts_only_audience_skips_players(self, registry, connect):
        room = RoomStore(audience=AUDIENCE_HOSTS).get_or_create("R1")
        host, host_ws = connect()
        player, player_ws = connect()
        room.add_host(host)
        room.add_player(player)

        assert room.broadcast({"type": "ping"}) == 1
        await registry.drain()
        assert host_ws.all("ping")
        assert player_ws.all("ping") == []

    @pytest.mark.asyncio
    async def test_closed_and_failing_peers_do_not_block_others(self, store, registry, connect):
        room = store.get_or_create("R1")
        ok, ok_ws = connect()
        closed, closed_ws = connect()
        broken, _ = connect(fail=True)
        for conn in (ok, closed, broken):
            room.add_host(conn)
        closed_ws.close()

        assert room.broadcast({"type": "ping"}) == 2
        await registry.drain()
        assert ok_ws.all("ping") == [{"type": "ping"}]
        assert closed_ws.sent_messages == []
        # a failed write marks the peer closed, so it is skipped from then on
        assert broken.is_open() is False
        assert room.broadcast({"type": "ping"}) == 1

    @pytest.mark.asyncio
    async def test_full_outbox_drops_instead_of_blocking(self, connect):
        _, ws = connect()
        conn = Connection(ws, outbox_limit=2)
        assert conn.send("1") and conn.send("2")
        assert conn.send("3") is False
        await conn.drain()
        assert conn.ws.sent_messages == [1, 2]

    @pytest.mark.asyncio
    async def test_close_discards_pending_frames(self, connect):
        conn, ws = connect()
        conn.send_json({"type": "ping"})
        conn.close()
        await asyncio.wait_for(conn.drain(), timeout=1)
        assert ws.sent_messages == []
        assert conn.send_json({"type": "ping"}) is False
