"""
Wire and game constants for the Trail by Elements session server.

Event names follow the browser client, which speaks camelCase on the wire.
"""

# Inbound Socket.IO events (client -> server)
INBOUND_EVENTS = {
    'JOIN': 'joinLobby',
    'LEAVE': 'leaveLobby',
    'GET_LOBBY': 'getLobby',
    'START_GAME': 'startGame',
    'END_TURN': 'endTurn',
    'NEXT_TURN': 'nextTurn',
    'START_VOTE': 'startVote',
    'CAST_VOTE': 'castVote',
    'CHAT': 'chatMessage',
}

# Outbound Socket.IO events (server -> client)
OUTBOUND_EVENTS = {
    'CONNECTED': 'connected',
    'ERROR': 'error',
    'LOBBY_UPDATE': 'lobbyUpdate',
    'GAME_STARTED': 'gameStarted',
    'TURN_UPDATE': 'turnUpdate',
    'VOTE_STARTED': 'voteStarted',
    'VOTE_UPDATE': 'voteUpdate',
    'VOTE_TIE': 'voteTie',
    'VOTE_RESULT': 'voteResult',
    'VOTE_CANCELLED': 'voteCancelled',
    'PLAYER_ELIMINATED': 'playerEliminated',
    'CHAT': 'chatMessage',
}

# Gameplay actions relayed verbatim: inbound event -> outbound event
GAME_ACTIONS = {
    'walkAction': 'walkUpdate',
    'makeFireAction': 'makeFireUpdate',
    'playerAction': 'actionUpdate',
}

# Turn scheduler states
TURN_STATES = {
    'NOT_STARTED': 'not_started',
    'IN_PROGRESS': 'in_progress',
}

# Vote coordinator states
VOTE_STATES = {
    'IDLE': 'idle',
    'VOTING': 'voting',
}

# Reasons a vote can end without a tally-driven result
VOTE_CANCEL_REASONS = {
    'TIMEOUT': 'timeout',
    'INVALID_ROSTER_STATE': 'invalid_roster_state',
}

# Value broadcast as the vote result when the top tally is shared
VOTE_TIE_RESULT = 'tie'
VOTE_TIE_MESSAGE = 'Tie! Nobody is eliminated.'

# Player payload keys that are modelled explicitly; everything else is relayed as extra display data
PLAYER_RESERVED_KEYS = ('id', 'name', 'socketId', 'avatarSvg', 'stats')

GAME_CONFIG = {
    'MAX_PLAYERS_PER_SESSION': 12,
    'MAX_DISPLAY_NAME_LENGTH': 32,
    'MAX_SESSION_KEY_LENGTH': 64,
    'VOTE_TIMEOUT_SECONDS': 0,  # 0 disables the vote deadline
    'VOTE_SWEEP_INTERVAL_SECONDS': 5,
}
