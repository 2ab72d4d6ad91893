"""End-to-end tests: two battle sessions sharing one room store.

Covers:
- JOIN -> SELECT_CARD -> WAITING (player1) / BATTLE (player2)
- Move submission: once per round, unknown moves rejected, phase gating
- Round resolution mirrored into both views (hp, shield, action log)
- Full match to a knockout, outcome mapping, card transfer to the winner
- Room collisions: busy room, self battle
- play_again resets to JOIN and frees the room code
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.data.cards import get_card
from app.models.owned_card import AcquiredVia
from app.services.battle_session import BattleSession
from app.services.inventory_service import get_owned_cards, insert_owned_card
from app.services.match_sync import Outcome, SessionPhase

P1 = "0xaaa"
P2 = "0xbbb"


async def _count_cards(db: AsyncSession, address: str) -> int:
    return len(await get_owned_cards(db, address))


async def _start_match(room_store, session_factory, fixed_rng):
    p1 = BattleSession(room_store, P1, session_factory, rng=fixed_rng(0.5))
    p2 = BattleSession(room_store, P2, session_factory, rng=fixed_rng(0.5))
    assert p1.enter_room("1234")
    assert await p1.select_card(get_card("pikachu"))
    assert p2.enter_room("1234")
    assert await p2.select_card(get_card("pikachu"))
    return p1, p2


class TestJoining:
    async def test_enter_room_moves_to_select_card(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        assert session.enter_room("ab12")
        assert session.phase == SessionPhase.select_card
        assert session.view.room_id == "AB12"

    async def test_enter_room_generates_code(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        assert session.enter_room()
        assert len(session.view.room_id) == 4

    async def test_enter_room_rejects_bad_code(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        assert not session.enter_room("toolong")
        assert session.phase == SessionPhase.join
        assert session.view.messages

    async def test_player1_waits(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        session.enter_room("1234")
        assert await session.select_card(get_card("pikachu"))

        assert session.phase == SessionPhase.waiting
        assert session.view.is_player1
        assert session.view.my_hp == 160
        room = await room_store.read_room("1234")
        assert room.player1_address == P1
        assert room.status.value == "waiting"

    async def test_both_enter_battle(self, room_store, session_factory, fixed_rng):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)

        assert p1.phase == SessionPhase.battle
        assert p2.phase == SessionPhase.battle
        assert not p2.view.is_player1
        assert p1.view.opponent_hp == 160
        assert p2.view.opponent_hp == 160

    async def test_third_player_rejected(self, room_store, session_factory, fixed_rng):
        await _start_match(room_store, session_factory, fixed_rng)
        late = BattleSession(room_store, "0xccc", session_factory)
        late.enter_room("1234")

        assert not await late.select_card(get_card("venusaur"))
        assert late.phase == SessionPhase.select_card
        assert "already in use" in late.view.messages[-1]
        room = await room_store.read_room("1234")
        assert room.player2_address == P2

    async def test_cannot_battle_yourself(self, room_store, session_factory):
        first = BattleSession(room_store, P1, session_factory)
        first.enter_room("1234")
        await first.select_card(get_card("pikachu"))

        second = BattleSession(room_store, P1.upper(), session_factory)
        second.enter_room("1234")
        assert not await second.select_card(get_card("pikachu"))
        assert "yourself" in second.view.messages[-1]

    async def test_select_card_outside_phase(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        assert not await session.select_card(get_card("pikachu"))
        assert session.phase == SessionPhase.join


class TestMoves:
    async def test_submit_outside_battle(self, room_store, session_factory):
        session = BattleSession(room_store, P1, session_factory)
        session.enter_room("1234")
        await session.select_card(get_card("pikachu"))

        assert not await session.submit_move("Thunder Shock")
        room = await room_store.read_room("1234")
        assert room.player1_move is None

    async def test_unknown_move_rejected(self, room_store, session_factory, fixed_rng):
        p1, _ = await _start_match(room_store, session_factory, fixed_rng)
        assert not await p1.submit_move("Hyper Beam")
        assert not p1.view.my_move_submitted

    async def test_second_submit_in_round_rejected(self, room_store, session_factory, fixed_rng):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)

        assert await p1.submit_move("Thunder Shock")
        assert not await p1.submit_move("Quick Attack")

        room = await room_store.read_room("1234")
        assert room.player1_move.name == "Thunder Shock"
        assert p2.view.opponent_move_submitted

    async def test_round_resolved_and_mirrored(self, room_store, session_factory, fixed_rng):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)

        await p1.submit_move("Thunder Shock")
        await p2.submit_move("Double Team")

        room = await room_store.read_room("1234")
        assert room.player1_move is None and room.player2_move is None
        assert room.player2_hp == 130
        assert room.player2_shield == 15
        assert room.action_log == [
            "Pikachu used Thunder Shock! Dealt 30 DMG.",
            "Pikachu used Double Team! Gained Shield.",
        ]

        assert p1.view.opponent_hp == 130 and p2.view.my_hp == 130
        assert p1.view.opponent_shield == 15 and p2.view.my_shield == 15
        assert p1.view.action_log == p2.view.action_log == room.action_log
        for session in (p1, p2):
            assert not session.view.my_move_submitted
            assert not session.view.opponent_move_submitted
            assert not session.view.resolution_in_flight

    async def test_player2_first_still_resolves_player1_first(
        self, room_store, session_factory, fixed_rng
    ):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)

        await p2.submit_move("Quick Attack")
        await p1.submit_move("Thunder Shock")

        room = await room_store.read_room("1234")
        assert room.action_log[0].startswith("Pikachu used Thunder Shock!")
        assert room.action_log[1].startswith("Pikachu used Quick Attack!")
        assert room.player1_hp == 135
        assert room.player2_hp == 130


class TestFullMatch:
    async def test_knockout_transfers_loser_card(self, room_store, session_factory, fixed_rng):
        async with session_factory() as db:
            mine = await insert_owned_card(db, "pikachu", P1, AcquiredVia.starter)
            theirs = await insert_owned_card(db, "pikachu", P2, AcquiredVia.starter)

        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)

        # 30 a round against 25 a round: player2 falls first.
        for _ in range(20):
            if p1.phase == SessionPhase.result:
                break
            assert await p1.submit_move("Thunder Shock")
            assert await p2.submit_move("Quick Attack")

        assert p1.phase == SessionPhase.result
        assert p2.phase == SessionPhase.result
        assert p1.view.outcome == Outcome.me
        assert p2.view.outcome == Outcome.opponent
        assert p2.view.my_hp == 0

        room = await room_store.read_room("1234")
        assert room.winner.value == "player1"
        assert room.status.value == "finished"
        assert len(room.action_log) == 12

        async with session_factory() as db:
            winner_cards = await get_owned_cards(db, P1)
            loser_cards = await get_owned_cards(db, P2)
        assert loser_cards == []
        assert {c.id for c in winner_cards} == {mine.id, theirs.id}
        won = next(c for c in winner_cards if c.id == theirs.id)
        assert won.acquired_via == AcquiredVia.battle_win

    async def test_no_moves_after_result(self, room_store, session_factory, fixed_rng):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)
        await room_store.update_room("1234", {"player2_hp": 10})

        await p1.submit_move("Thunder Shock")
        await p2.submit_move("Quick Attack")

        assert p1.phase == SessionPhase.result
        assert not await p1.submit_move("Thunder Shock")

    async def test_play_again(self, room_store, session_factory, fixed_rng):
        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)
        await room_store.update_room("1234", {"player2_hp": 10})
        await p1.submit_move("Thunder Shock")
        await p2.submit_move("Quick Attack")

        assert await p1.play_again()
        p2.leave()

        assert p1.phase == SessionPhase.join
        assert p1.view.room_id is None
        assert await room_store.read_room("1234") is None
        assert room_store.broker.listener_count("1234") == 0

        # The code is free again.
        assert p1.enter_room("1234")
        assert await p1.select_card(get_card("venusaur"))
        assert p1.phase == SessionPhase.waiting

    async def test_play_again_only_from_result(self, room_store, session_factory, fixed_rng):
        p1, _ = await _start_match(room_store, session_factory, fixed_rng)
        assert not await p1.play_again()
        assert await room_store.read_room("1234") is not None


class TestDraw:
    async def test_double_knockout_moves_nothing(self, room_store, session_factory, fixed_rng):
        async with session_factory() as db:
            await insert_owned_card(db, "pikachu", P1, AcquiredVia.starter)
            await insert_owned_card(db, "pikachu", P2, AcquiredVia.starter)

        p1, p2 = await _start_match(room_store, session_factory, fixed_rng)
        await room_store.update_room("1234", {"player1_hp": 10, "player2_hp": 10})
        await p1.submit_move("Thunder Shock")
        await p2.submit_move("Quick Attack")

        assert p1.view.outcome == Outcome.draw
        assert p2.view.outcome == Outcome.draw
        async with session_factory() as db:
            assert await _count_cards(db, P1) == 1
            assert await _count_cards(db, P2) == 1
