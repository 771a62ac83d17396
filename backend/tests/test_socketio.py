from lumi import socketio


def names(received):
    return [pkt['name'] for pkt in received]


def last_payload(received, name):
    matching = [pkt['args'][0] for pkt in received if pkt['name'] == name]
    return matching[-1] if matching else None


def test_socket_connect_and_join(sio_factory):
    sio_client = sio_factory()
    assert sio_client.is_connected()

    sio_client.emit('player:join', {'id': 'p1', 'name': 'Alice', 'isGameMaster': False})
    received = sio_client.get_received()
    assert names(received) == ['players:update', 'game:state']
    roster = last_payload(received, 'players:update')
    assert [p['id'] for p in roster] == ['p1']
    assert last_payload(received, 'game:state')['phase'] == 'lobby'


def test_phase_goes_only_to_joiner(sio_factory):
    watcher = sio_factory()
    player = sio_factory()
    player.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    assert names(watcher.get_received()) == ['players:update']
    assert 'game:state' in names(player.get_received())


def test_round_over_sockets(sio_factory):
    gm = sio_factory()
    alice = sio_factory()
    bob = sio_factory()
    alice.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    bob.emit('player:join', {'id': 'p2', 'name': 'Bob'})
    gm.emit('player:join', {'id': 'gm', 'name': 'Host', 'isGameMaster': True})
    for c in (gm, alice, bob):
        c.get_received()

    # A player cannot start the round
    bob.emit('game:start', {'totalPuzzles': 3})
    assert gm.get_received() == []

    gm.emit('game:start', {'totalPuzzles': 3})
    started = last_payload(alice.get_received(), 'game:started')
    assert started['isStarted'] is True
    assert started['totalPuzzles'] == 3
    bob.get_received()
    gm.get_received()

    alice.emit('player:progress', {'currentPuzzle': 0, 'currentMoves': 4, 'score': 0, 'totalTime': 10})
    alice.emit('player:complete', {
        'completedPuzzles': 1, 'score': 950, 'totalTime': 28,
        'currentPuzzle': 1, 'puzzleIndex': 0, 'puzzleScore': 950,
    })
    received = gm.get_received()
    assert names(received) == ['players:update', 'players:update', 'player:completed']
    assert last_payload(received, 'player:completed')['puzzleScore'] == 950
    alice_row = next(p for p in last_payload(received, 'players:update') if p['id'] == 'p1')
    assert alice_row['completedPuzzles'] == 1
    assert alice_row['score'] == 950

    gm.emit('game:end')
    ended = last_payload(bob.get_received(), 'game:ended')
    assert ended['phase'] == 'ended'
    assert ended['totalPuzzles'] == 3


def test_reconnect_keeps_score(sio_factory):
    gm = sio_factory()
    gm.emit('player:join', {'id': 'gm', 'name': 'Host', 'isGameMaster': True})
    gm.emit('game:start', {'totalPuzzles': 2})

    first = sio_factory()
    first.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    first.emit('player:complete', {
        'completedPuzzles': 1, 'score': 900, 'totalTime': 35,
        'currentPuzzle': 1, 'puzzleIndex': 0, 'puzzleScore': 900,
    })
    first.disconnect()
    gm.get_received()

    second = sio_factory()
    second.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    received = second.get_received()
    row = next(p for p in last_payload(received, 'players:update') if p['id'] == 'p1')
    assert row['online'] is True
    assert row['score'] == 900
    assert last_payload(received, 'game:state')['phase'] == 'running'


def test_state_route_reflects_socket_activity(sio_factory, client):
    player = sio_factory()
    player.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    res = client.get('/api/state')
    assert res.status_code == 200
    data = res.get_json()
    assert data['phase']['phase'] == 'lobby'
    assert [p['name'] for p in data['players']] == ['Alice']


def test_each_app_gets_its_own_handlers(flask_app, app_factory):
    queued = len(socketio.handlers)
    second = app_factory()
    third = app_factory()
    assert len(socketio.handlers) == queued

    sio_client = socketio.test_client(third, flask_test_client=third.test_client())
    sio_client.emit('player:join', {'id': 'p1', 'name': 'Alice'})
    assert names(sio_client.get_received()) == ['players:update', 'game:state']
    sio_client.disconnect()
    assert 'p1' not in third.extensions['lumi'].registry
    assert len(second.extensions['lumi'].registry) == 0
    assert len(flask_app.extensions['lumi'].registry) == 0
