import pytest

from puzzleduo.models import Outcome


@pytest.fixture()
def reconciler(services):
    return services.reconciler


def test_last_member_disconnect_deletes_room(services, reconciler, broadcaster, registry):
    code = services.cooperative.create('sid-a')
    broadcaster.clear()
    reconciler.handle_disconnect('sid-a')
    assert code not in registry
    assert broadcaster.events('peerLeft') == []
    assert broadcaster.closed == [code]


def test_one_of_two_disconnects_notifies_survivor_once(services, reconciler, broadcaster, registry):
    code = services.cooperative.create('sid-a')
    services.cooperative.join(code, 'sid-b')
    broadcaster.clear()

    reconciler.handle_disconnect('sid-a')
    reconciler.handle_disconnect('sid-a')

    assert broadcaster.sent == [('connection', 'sid-b', 'peerLeft', {'message': broadcaster.sent[0][3]['message']})]
    session = registry.get(code)
    assert [m.connection_id for m in session.members] == ['sid-b']


def test_late_action_after_peer_left_is_ignored(services, reconciler, broadcaster, registry):
    code = services.cooperative.create('sid-a')
    services.cooperative.join(code, 'sid-b')
    reconciler.handle_disconnect('sid-b')
    broadcaster.clear()
    assert services.cooperative.submit_action(code, 'sid-b', 'B', '/var/log') is Outcome.IGNORED
    assert broadcaster.sent == []


def test_disconnect_deletes_owned_quiz(services, reconciler, broadcaster, registry):
    code = services.quiz.start('sid-q')
    reconciler.handle_disconnect('sid-q')
    assert code not in registry
    assert code in broadcaster.closed
    assert services.quiz.submit_answer(code, 'pwd', 'sid-q') is Outcome.IGNORED


def test_unknown_connection_is_a_no_op(reconciler, broadcaster):
    assert reconciler.handle_disconnect('sid-ghost').empty
    assert broadcaster.sent == []


def test_sweep_reclaims_idle_sessions(services, reconciler, broadcaster, registry, clock):
    stale = services.cooperative.create('sid-a')
    clock.advance(120)
    fresh = services.quiz.start('sid-q')
    broadcaster.clear()

    assert reconciler.sweep_idle(60) == 1
    assert stale not in registry
    assert fresh in registry
    assert broadcaster.sent[0][:3] == ('session', stale, 'sessionExpired')
    assert broadcaster.closed == [stale]


def test_activity_keeps_session_alive(services, reconciler, registry, clock):
    code = services.cooperative.create('sid-a')
    services.cooperative.join(code, 'sid-b')
    clock.advance(50)
    services.cooperative.submit_action(code, 'sid-a', 'A', 'find')
    clock.advance(50)
    assert reconciler.sweep_idle(60) == 0
    assert code in registry
