def _events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received('/ws') if pkt['name'] == name]


def _create(host, name='Host'):
    host.emit('room:create', {'name': name}, namespace='/ws')
    return _events(host, 'room:update')[-1]['code']


def test_connect_and_leave_without_a_room(sio_client):
    conn = sio_client()
    assert conn.is_connected('/ws')
    conn.emit('room:leave', {}, namespace='/ws')
    assert conn.get_received('/ws') == []


def test_create_and_join_broadcast_to_the_room(sio_client):
    host, guest = sio_client(), sio_client()
    code = _create(host)

    guest.emit('room:join', {'code': code.lower(), 'name': 'Guest'}, namespace='/ws')

    for conn in (host, guest):
        snapshot = _events(conn, 'room:update')[-1]
        assert snapshot['code'] == code
        assert [p['name'] for p in snapshot['players']] == ['Host', 'Guest']


def test_join_unknown_room_reports_an_error(sio_client):
    conn = sio_client()
    conn.emit('room:join', {'code': 'ZZZZZ', 'name': 'Lost'}, namespace='/ws')
    assert _events(conn, 'error:msg') == [{'text': 'Room not found'}]


def test_only_the_host_may_start(sio_client):
    host, guest = sio_client(), sio_client()
    code = _create(host)
    host.emit('game:start', {'code': code}, namespace='/ws')
    assert _events(host, 'error:msg') == [{'text': 'At least 2 players are required to start'}]
    guest.emit('room:join', {'code': code, 'name': 'Guest'}, namespace='/ws')
    guest.get_received('/ws')

    guest.emit('game:start', {'code': code}, namespace='/ws')
    assert _events(guest, 'error:msg') == [{'text': 'Only the host can start the game'}]


def test_roll_is_private_to_the_roller(sio_client):
    host, guest = sio_client(), sio_client()
    code = _create(host)
    guest.emit('room:join', {'code': code, 'name': 'Guest'}, namespace='/ws')
    host.emit('game:start', {'code': code}, namespace='/ws')
    host.get_received('/ws')
    guest.get_received('/ws')

    # not the guest's turn: nothing happens
    guest.emit('game:roll', {'code': code}, namespace='/ws')
    assert guest.get_received('/ws') == []

    host.emit('game:roll', {'code': code}, namespace='/ws')
    host_packets = host.get_received('/ws')
    guest_packets = guest.get_received('/ws')

    rolls = [p['args'][0]['roll'] for p in host_packets if p['name'] == 'game:privateRoll']
    assert len(rolls) == 1
    assert rolls[0] in (1, 2, 3, 4, 'X')
    assert not any(p['name'] == 'game:privateRoll' for p in guest_packets)
    snapshot = [p['args'][0] for p in guest_packets if p['name'] == 'room:update'][-1]
    assert snapshot['game']['phase'] == 'DECLARE'
    assert snapshot['game']['lastReveal'] is None


def test_leave_confirms_to_the_leaver(sio_client):
    host, guest = sio_client(), sio_client()
    code = _create(host)
    guest.emit('room:join', {'code': code, 'name': 'Guest'}, namespace='/ws')
    host.get_received('/ws')

    guest.emit('room:leave', {}, namespace='/ws')

    assert _events(guest, 'room:left') == [{'code': code}]
    assert [p['name'] for p in _events(host, 'room:update')[-1]['players']] == ['Host']


def test_guest_disconnect_ends_a_running_game(sio_client):
    host, guest = sio_client(), sio_client()
    code = _create(host)
    guest.emit('room:join', {'code': code, 'name': 'Guest'}, namespace='/ws')
    host.emit('game:start', {'code': code}, namespace='/ws')
    host.get_received('/ws')

    guest.disconnect(namespace='/ws')

    game = _events(host, 'room:update')[-1]['game']
    assert game['phase'] == 'END'
    assert game['winnerReason'] == 'opponent left'
    assert game['winnerId'] == [p['id'] for p in game['players'] if p['name'] == 'Host'][0]
