from werkzeug.security import generate_password_hash

from trivia.services.game.engine import TIMER_EXPIRY, TIMER_GRACE, TIMER_TICK, Phase
from trivia.services.game.gateway import TriviaGateway


def test_join_sends_snapshot_to_joiner_and_broadcasts_players(gateway, emitter):
    gateway.handle_join('A', 'Alice')
    gateway.handle_join('B', {'name': 'Bob', 'color': '#00ff00'})

    state_msgs = [(payload, to) for event, payload, to in emitter.sent if event == 'trivia:state']
    assert [to for _, to in state_msgs] == ['A', 'B']
    assert state_msgs[0][0]['phase'] == 'idle'

    player_lists = [(payload, to) for event, payload, to in emitter.sent if event == 'players:update']
    assert all(to is None for _, to in player_lists)
    assert [p['name'] for p in player_lists[-1][0]] == ['Alice', 'Bob']


def test_disconnect_broadcasts_once(gateway, emitter):
    gateway.handle_join('A', 'Alice')
    emitter.clear()
    gateway.handle_disconnect('A')
    gateway.handle_disconnect('A')
    gateway.handle_disconnect('never-joined')
    assert emitter.events('players:update') == [[]]


def test_full_game_with_virtual_time(gateway, emitter, scheduler, ledger):
    gateway.handle_join('A', 'Alice')
    gateway.handle_join('B', 'Bob')
    emitter.clear()

    gateway.handle_start('A')
    assert emitter.events('trivia:new_question')[0]['index'] == 0
    gateway.handle_submit('A', 2)
    gateway.handle_submit('A', 0)
    gateway.handle_submit('B', {'answer': 1})

    scheduler.advance(10)
    assert emitter.events('trivia:timer_update') == [9, 8, 7, 6, 5, 4, 3, 2, 1]
    assert emitter.events('trivia:round_end') == [{'answer': 2, 'scores': [['A', 1], ['B', 0]]}]
    assert gateway.engine.phase == Phase.GRACE

    # nothing is accepted during the grace window
    gateway.handle_submit('B', 2)
    scheduler.advance(4)
    assert len(emitter.events('trivia:new_question')) == 1
    scheduler.advance(1)
    assert emitter.events('trivia:new_question')[-1]['index'] == 1

    gateway.handle_submit('A', 1)
    scheduler.advance(15)
    assert emitter.events('trivia:round_end')[-1] == {'answer': 1, 'scores': [['A', 2], ['B', 0]]}
    assert emitter.events('trivia:game_over') == [[['A', 2], ['B', 0]]]
    assert gateway.engine.phase == Phase.GAME_OVER
    assert scheduler.pending() == 0
    assert len(ledger) == 0

    # no further questions until someone starts again
    scheduler.advance(60)
    assert len(emitter.events('trivia:new_question')) == 2


def test_late_answer_after_expiry_is_ignored(gateway, emitter, scheduler):
    gateway.handle_start('host')
    gateway.handle_submit('A', 0)
    scheduler.advance(10)
    gateway.handle_submit('B', 2)
    scheduler.advance(5)
    scheduler.advance(10)
    # B's late answer for question 1 was never recorded
    assert emitter.events('trivia:round_end')[0]['scores'] == [['A', 0]]
    assert emitter.events('trivia:round_end')[1]['scores'] == [['A', 0]]


def test_timers_are_cancelled_on_round_close(gateway, scheduler):
    gateway.handle_start('host')
    assert sorted(t.kind for t in gateway.pending_timers()) == [TIMER_EXPIRY, TIMER_TICK]
    scheduler.advance(10)
    assert [t.kind for t in gateway.pending_timers()] == [TIMER_GRACE]
    assert scheduler.pending() == 1


def test_stop_cancels_pending_timers(gateway, emitter, scheduler):
    gateway.handle_start('host')
    gateway.handle_submit('A', 2)
    scheduler.advance(3)
    gateway.handle_stop('host')
    assert gateway.pending_timers() == []
    assert scheduler.pending() == 0
    assert emitter.events('trivia:stopped') == [{'scores': []}]

    ticks_before = len(emitter.events('trivia:timer_update'))
    scheduler.advance(30)
    assert len(emitter.events('trivia:timer_update')) == ticks_before
    assert emitter.events('trivia:round_end') == []

    gateway.handle_start('host')
    scheduler.advance(10)
    assert emitter.events('trivia:round_end') == [{'answer': 2, 'scores': []}]


def test_cancelled_timer_that_already_woke_is_skipped(gateway, emitter, scheduler):
    gateway.handle_start('host')
    stale = next(t for t in gateway.pending_timers() if t.kind == TIMER_EXPIRY)
    gateway.handle_stop('host')
    gateway.handle_start('host')
    emitter.clear()
    gateway.handle_timer(stale)
    assert emitter.sent == []
    assert gateway.engine.phase == Phase.ROUND_ACTIVE


def test_malformed_answers_are_dropped(gateway, scheduler, emitter):
    gateway.handle_start('host')
    for payload in ('2', None, 2.5, True, {'option': 2}, {'answer': '2'}, [2], 7):
        gateway.handle_submit('A', payload)
    scheduler.advance(10)
    assert emitter.events('trivia:round_end') == [{'answer': 2, 'scores': []}]


def test_admin_key_guards_start_and_stop(engine, bank, ledger, registry, emitter, scheduler):
    from trivia.services.game.context import TriviaContext

    context = TriviaContext(registry=registry, ledger=ledger, bank=bank, engine=engine)
    guarded = TriviaGateway(context, emitter, scheduler, admin_key_hash=generate_password_hash('s3cret'))

    guarded.handle_start('A')
    guarded.handle_start('A', {'key': 'wrong'})
    assert engine.phase == Phase.IDLE

    guarded.handle_start('A', {'key': 's3cret'})
    assert engine.phase == Phase.ROUND_ACTIVE
    guarded.handle_stop('A')
    assert engine.phase == Phase.ROUND_ACTIVE
    guarded.handle_stop('A', {'key': 's3cret'})
    assert engine.phase == Phase.IDLE


def test_snapshot_includes_players(gateway):
    gateway.handle_join('A', 'Alice')
    snap = gateway.snapshot()
    assert snap['players'][0]['name'] == 'Alice'
    assert snap['phase'] == 'idle'


def test_disconnect_closes_round_when_everyone_left_has_answered(bank, ledger, registry, emitter, scheduler):
    from trivia.services.game.context import TriviaContext
    from trivia.services.game.engine import RoundEngine

    engine = RoundEngine(bank, ledger, registry=registry, end_when_all_answered=True)
    context = TriviaContext(registry=registry, ledger=ledger, bank=bank, engine=engine)
    early = TriviaGateway(context, emitter, scheduler)
    early.handle_join('A', 'Alice')
    early.handle_join('B', 'Bob')
    early.handle_start('A')
    early.handle_submit('A', 2)
    early.handle_disconnect('B')

    assert engine.phase == Phase.GRACE
    assert emitter.events('trivia:round_end') == [{'answer': 2, 'scores': [['A', 1]]}]
    assert [t.kind for t in early.pending_timers()] == [TIMER_GRACE]
