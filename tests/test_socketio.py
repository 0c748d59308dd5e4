"""
End-to-end tests for the Socket.IO gateway using Flask-SocketIO test clients.
"""


def of(received, name):
    """Payloads of the received packets with the given event name."""
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]


def event_names(received):
    return [pkt['name'] for pkt in received]


def join(test_client, name, lobby_id='L1', **player):
    test_client.emit('joinLobby', {'lobbyId': lobby_id, 'player': {'name': name, **player}})


def joined_clients(make_client, *names, lobby_id='L1'):
    clients = []
    for name in names:
        test_client = make_client()
        join(test_client, name, lobby_id)
        clients.append(test_client)
    for test_client in clients:
        test_client.get_received()
    return clients


def test_connect_greets_client(flask_app, socketio):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    assert test_client.is_connected()
    greetings = of(test_client.get_received(), 'connected')
    assert len(greetings) == 1
    assert greetings[0]['message'] == 'Connected to server'
    test_client.disconnect()


def test_connection_is_tracked(flask_app, make_client):
    connections = flask_app.extensions['connection_manager']
    test_client = make_client(auth={'token': 'abc'})
    assert connections.get_connection_stats()['live_connections'] == 1
    info = next(iter(connections.connections.values()))
    assert info.caller_context == {'token': 'abc'}

    test_client.disconnect()
    assert connections.get_connection_stats() == {'live_connections': 0, 'total_connections': 1}


def test_join_broadcasts_roster_to_all_subscribers(make_client):
    alice = make_client()
    join(alice, 'A', avatarSvg='<svg/>')
    updates = of(alice.get_received(), 'lobbyUpdate')
    assert [p['name'] for p in updates[-1]['players']] == ['A']
    assert updates[-1]['players'][0]['avatarSvg'] == '<svg/>'

    bob = make_client()
    join(bob, 'B')
    for test_client in (alice, bob):
        state = of(test_client.get_received(), 'lobbyUpdate')[-1]
        assert state['lobbyId'] == 'L1'
        assert [p['name'] for p in state['players']] == ['A', 'B']


def test_numeric_lobby_id_is_accepted(make_client, app_registry):
    alice = make_client()
    alice.emit('joinLobby', {'lobbyId': 42, 'player': {'name': 'A'}})
    assert of(alice.get_received(), 'lobbyUpdate')[-1]['lobbyId'] == '42'
    assert '42' in app_registry


def test_sessions_do_not_leak_broadcasts(make_client):
    alice, = joined_clients(make_client, 'A', lobby_id='L1')
    bob, = joined_clients(make_client, 'B', lobby_id='L2')
    alice.emit('chatMessage', {'lobbyId': 'L1', 'text': 'hi'})
    assert of(alice.get_received(), 'chatMessage') == [{'text': 'hi'}]
    assert bob.get_received() == []


def test_invalid_join_is_answered_privately(make_client, app_registry):
    alice, = joined_clients(make_client, 'A')
    bob = make_client()
    bob.emit('joinLobby', {'lobbyId': 'L1', 'player': {'name': ''}})

    errors = of(bob.get_received(), 'error')
    assert errors == [{'code': 'invalid_payload', 'message': 'Display name cannot be empty', 'event': 'joinLobby'}]
    assert alice.get_received() == []
    assert app_registry.get('L1').player_names == ['A']


def test_join_without_lobby_id(make_client, app_registry):
    alice = make_client()
    alice.emit('joinLobby', {'player': {'name': 'A'}})
    assert of(alice.get_received(), 'error')[0]['code'] == 'invalid_payload'
    assert len(app_registry) == 0


def test_rejected_first_join_leaves_no_session(make_client, app_registry):
    alice = make_client()
    alice.emit('joinLobby', {'lobbyId': 'L9', 'player': 'not-an-object'})
    assert of(alice.get_received(), 'error')[0]['code'] == 'invalid_payload'
    assert 'L9' not in app_registry


def test_event_for_unknown_session(make_client):
    alice = make_client()
    alice.emit('startGame', {'lobbyId': 'nope'})
    received = alice.get_received()
    assert event_names(received) == ['error']
    assert of(received, 'error')[0] == {
        'code': 'session_not_found',
        'message': 'Session nope not found',
        'event': 'startGame'
    }


def test_non_object_payload(make_client):
    alice, = joined_clients(make_client, 'A')
    alice.emit('leaveLobby', 'L1')
    assert of(alice.get_received(), 'error')[0]['code'] == 'invalid_payload'


def test_get_lobby_replies_to_caller_only(make_client):
    alice, bob = joined_clients(make_client, 'A', 'B')
    bob.emit('getLobby', {'lobbyId': 'L1'})
    states = of(bob.get_received(), 'lobbyUpdate')
    assert len(states) == 1
    assert [p['name'] for p in states[0]['players']] == ['A', 'B']
    assert alice.get_received() == []


def test_leave_notifies_remaining_players(make_client, app_registry):
    alice, bob = joined_clients(make_client, 'A', 'B')
    alice.emit('leaveLobby', {'lobbyId': 'L1'})
    state = of(bob.get_received(), 'lobbyUpdate')[-1]
    assert [p['name'] for p in state['players']] == ['B']
    # the leaver is unsubscribed
    assert alice.get_received() == []

    bob.emit('leaveLobby', {'lobbyId': 'L1'})
    assert 'L1' not in app_registry


def test_disconnect_removes_player(make_client, app_registry):
    alice, bob = joined_clients(make_client, 'A', 'B')
    alice.disconnect()
    state = of(bob.get_received(), 'lobbyUpdate')[-1]
    assert [p['name'] for p in state['players']] == ['B']

    bob.disconnect()
    assert len(app_registry) == 0


def test_rejoin_after_disconnect(make_client, app_registry):
    alice, = joined_clients(make_client, 'A')
    alice.disconnect()
    again, = joined_clients(make_client, 'A')
    again.emit('getLobby', {'lobbyId': 'L1'})
    state = of(again.get_received(), 'lobbyUpdate')[-1]
    assert [p['name'] for p in state['players']] == ['A']


def test_turn_flow(make_client, app_registry, fixed_rng):
    app_registry.rng = fixed_rng(0)
    alice, bob = joined_clients(make_client, 'A', 'B')

    alice.emit('startGame', {'lobbyId': 'L1'})
    received = bob.get_received()
    assert event_names(received) == ['gameStarted', 'turnUpdate']
    assert of(received, 'turnUpdate') == [{'currentPlayerName': 'A'}]
    alice.get_received()

    bob.emit('endTurn', {'lobbyId': 'L1'})
    assert of(bob.get_received(), 'error')[0]['code'] == 'not_players_turn'
    assert alice.get_received() == []

    alice.emit('endTurn', {'lobbyId': 'L1'})
    assert of(bob.get_received(), 'turnUpdate') == [{'currentPlayerName': 'B'}]
    alice.get_received()

    bob.emit('nextTurn', {'lobbyId': 'L1', 'nextPlayerName': 'A'})
    assert of(alice.get_received(), 'turnUpdate') == [{'currentPlayerName': 'A'}]


def test_end_turn_before_start(make_client):
    alice, = joined_clients(make_client, 'A')
    alice.emit('endTurn', {'lobbyId': 'L1'})
    assert of(alice.get_received(), 'error')[0]['code'] == 'game_not_started'


def test_vote_elimination_flow(make_client, app_registry):
    alice, bob, carol = joined_clients(make_client, 'A', 'B', 'C')

    alice.emit('startVote', {'lobbyId': 'L1', 'targetName': 'C'})
    started = of(carol.get_received(), 'voteStarted')
    assert started[0]['target'] == 'C'
    alice.get_received()
    bob.get_received()

    alice.emit('castVote', {'lobbyId': 'L1', 'voter': 'A', 'vote': 'C'})
    bob.emit('castVote', {'lobbyId': 'L1', 'vote': 'C'})
    carol.emit('castVote', {'lobbyId': 'L1', 'voter': 'C', 'vote': 'A'})

    received = bob.get_received()
    assert event_names(received) == [
        'voteUpdate', 'voteUpdate', 'voteUpdate',
        'playerEliminated', 'voteResult', 'lobbyUpdate', 'turnUpdate'
    ]
    assert of(received, 'playerEliminated') == [{'name': 'C'}]
    assert of(received, 'voteResult') == ['C']
    assert [p['name'] for p in of(received, 'lobbyUpdate')[0]['players']] == ['A', 'B']

    # the eliminated player still receives the outcome
    assert of(carol.get_received(), 'playerEliminated') == [{'name': 'C'}]
    assert app_registry.get('L1').player_names == ['A', 'B']


def test_vote_tie_flow(make_client):
    alice, bob = joined_clients(make_client, 'A', 'B')
    alice.emit('startVote', {'lobbyId': 'L1'})
    alice.emit('castVote', {'lobbyId': 'L1', 'vote': 'B'})
    bob.emit('castVote', {'lobbyId': 'L1', 'vote': 'A'})

    received = alice.get_received()
    assert of(received, 'voteTie')[0]['message'] == 'Tie! Nobody is eliminated.'
    assert of(received, 'voteResult') == ['tie']
    assert 'playerEliminated' not in event_names(received)


def test_vote_errors(make_client):
    alice, bob = joined_clients(make_client, 'A', 'B')
    spectator = make_client()

    alice.emit('castVote', {'lobbyId': 'L1', 'vote': 'B'})
    assert of(alice.get_received(), 'error')[0]['code'] == 'vote_not_active'

    alice.emit('startVote', {'lobbyId': 'L1', 'targetName': 'B'})
    bob.get_received()
    alice.get_received()

    bob.emit('startVote', {'lobbyId': 'L1', 'targetName': 'A'})
    assert of(bob.get_received(), 'error')[0]['code'] == 'vote_already_active'

    bob.emit('castVote', {'lobbyId': 'L1', 'voter': 'A', 'vote': 'A'})
    assert of(bob.get_received(), 'error')[0]['code'] == 'actor_mismatch'

    bob.emit('castVote', {'lobbyId': 'L1', 'vote': 'Nobody'})
    assert of(bob.get_received(), 'error')[0]['code'] == 'invalid_roster_state'

    spectator.emit('castVote', {'lobbyId': 'L1', 'vote': 'A'})
    assert of(spectator.get_received(), 'error')[0]['code'] == 'voter_not_in_roster'

    assert alice.get_received() == []


def test_departure_mid_vote_resolves_on_remaining_ballots(make_client, app_registry):
    alice, bob, carol = joined_clients(make_client, 'A', 'B', 'C')
    alice.emit('startVote', {'lobbyId': 'L1'})
    bob.emit('castVote', {'lobbyId': 'L1', 'vote': 'C'})
    carol.emit('castVote', {'lobbyId': 'L1', 'vote': 'C'})
    bob.get_received()

    alice.disconnect()
    received = bob.get_received()
    assert of(received, 'playerEliminated') == [{'name': 'C'}]
    assert app_registry.get('L1').player_names == ['B']


def test_chat_relay(make_client):
    alice, bob = joined_clients(make_client, 'A', 'B')
    alice.emit('chatMessage', {'lobbyId': 'L1', 'from': 'A', 'text': 'hello'})
    assert of(bob.get_received(), 'chatMessage') == [{'from': 'A', 'text': 'hello'}]
    assert of(alice.get_received(), 'chatMessage') == [{'from': 'A', 'text': 'hello'}]


def test_game_actions_relay_and_store_stats(make_client):
    alice, bob = joined_clients(make_client, 'A', 'B')

    alice.emit('walkAction', {
        'lobbyId': 'L1',
        'steps': 3,
        'statsUpdates': [{'name': 'A', 'newStats': {'water': 4}}]
    })
    walks = of(bob.get_received(), 'walkUpdate')
    assert walks == [{'steps': 3, 'statsUpdates': [{'name': 'A', 'newStats': {'water': 4}}]}]

    alice.emit('makeFireAction', {'lobbyId': 'L1', 'statsUpdates': [{'name': 'B', 'newStats': {'fire': 1}}]})
    assert len(of(bob.get_received(), 'makeFireUpdate')) == 1

    alice.emit('playerAction', {'lobbyId': 'L1', 'kind': 'wave'})
    assert of(bob.get_received(), 'actionUpdate') == [{'kind': 'wave'}]

    bob.emit('getLobby', {'lobbyId': 'L1'})
    players = of(bob.get_received(), 'lobbyUpdate')[0]['players']
    assert {p['name']: p['stats'] for p in players} == {'A': {'water': 4}, 'B': {'fire': 1}}
