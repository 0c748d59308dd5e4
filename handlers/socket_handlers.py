"""
Socket.IO Event Handlers for Trail by Elements.

Connection gateway: translates inbound events into session operations
and relays the resulting broadcasts. Contains no game logic.

Rejected operations are answered with an ``error`` event sent only to the
connection that asked; broadcasts only follow applied transitions.
"""

import logging
from typing import Any, Callable, Dict, List

from flask import request
from flask_socketio import emit

from game.errors import InvalidPayload, SessionError
from lobby.models import OutboundEvent
from utils.constants import GAME_ACTIONS, INBOUND_EVENTS, OUTBOUND_EVENTS
from utils.helpers import validate_session_key
from .broadcaster import SessionBroadcaster

logger = logging.getLogger(__name__)


def parse_session_key(data: Any) -> str:
    """
    Extract the session key from an event payload.

    Raises:
        InvalidPayload: If the payload is not an object or has no usable ``lobbyId``
    """
    if not isinstance(data, dict):
        raise InvalidPayload("Payload must be an object")

    key = data.get('lobbyId')
    is_valid, error_msg = validate_session_key(key)
    if not is_valid:
        raise InvalidPayload(error_msg)
    return str(key)


def register_socket_handlers(socketio, registry, connection_manager,
                             namespace: str = '/') -> SessionBroadcaster:
    """
    Register all Socket.IO event handlers.

    Args:
        socketio: SocketIO instance
        registry: SessionRegistry holding the live sessions
        connection_manager: ConnectionManager tracking live connections
        namespace: Namespace to register on

    Returns:
        The broadcaster used by the handlers
    """
    broadcaster = SessionBroadcaster(socketio, namespace=namespace)

    def dispatch(session, events: List[OutboundEvent]) -> None:
        broadcaster.dispatch(session, events)
        registry.discard_if_empty(session)

    def expire_vote(key: str) -> None:
        session = registry.find(key)
        if session is not None:
            expired = session.expire_vote()
            if expired:
                dispatch(session, expired)

    def process(event_name: str, data: Any, operation: Callable) -> None:
        """
        Run one session operation to completion, broadcasts included.

        Args:
            event_name: Inbound event being handled
            data: Raw event payload
            operation: Callable ``(session, socket_id, data) -> events``
        """
        socket_id = request.sid
        connection_manager.touch(socket_id)

        with registry.lock:
            try:
                key = parse_session_key(data)
                expire_vote(key)
                session = registry.get(key)
                events = operation(session, socket_id, data)
            except SessionError as e:
                logger.warning(f"Rejected {event_name} from {socket_id}: {e.message}")
                broadcaster.reply(socket_id, OUTBOUND_EVENTS['ERROR'], e.to_dict(event_name))
                return
            except Exception:
                logger.exception(f"Error handling {event_name} from {socket_id}")
                broadcaster.reply(socket_id, OUTBOUND_EVENTS['ERROR'], {
                    'code': 'internal_error',
                    'message': f"Failed to handle {event_name}",
                    'event': event_name
                })
                return

            dispatch(session, events)

    def handle_connect(auth=None):
        """Handle client connection."""
        connection_manager.register_connection(request.sid, auth)
        emit(OUTBOUND_EVENTS['CONNECTED'], {'message': 'Connected to server', 'sid': request.sid})

    def handle_disconnect(reason=None):
        """Remove the connection from every session that holds it."""
        socket_id = request.sid
        logger.info(f"Client disconnected: {socket_id} ({reason})")

        with registry.lock:
            for session in registry.find_sessions_by_connection(socket_id):
                try:
                    _, events = session.remove_connection(socket_id)
                    dispatch(session, events)
                except Exception:
                    logger.exception(f"Error removing {socket_id} from session {session.key}")

        connection_manager.unregister_connection(socket_id)

    def handle_join(data):
        """Upsert the caller into a session, creating the session if needed."""
        socket_id = request.sid
        connection_manager.touch(socket_id)

        with registry.lock:
            try:
                key = parse_session_key(data)
                expire_vote(key)
                session, events = registry.join(key, socket_id, data.get('player'))
            except SessionError as e:
                logger.warning(f"Rejected join from {socket_id}: {e.message}")
                broadcaster.reply(socket_id, OUTBOUND_EVENTS['ERROR'], e.to_dict(INBOUND_EVENTS['JOIN']))
                return
            except Exception:
                logger.exception(f"Error handling join from {socket_id}")
                broadcaster.reply(socket_id, OUTBOUND_EVENTS['ERROR'], {
                    'code': 'internal_error',
                    'message': 'Failed to join lobby',
                    'event': INBOUND_EVENTS['JOIN']
                })
                return

            dispatch(session, events)

    def handle_leave(data):
        process(INBOUND_EVENTS['LEAVE'], data,
                lambda session, sid, payload: session.leave(sid))

    def handle_get_lobby(data):
        """Resend the full state to the caller only."""
        def operation(session, sid, payload):
            broadcaster.reply(sid, OUTBOUND_EVENTS['LOBBY_UPDATE'], session.to_dict())
            return []
        process(INBOUND_EVENTS['GET_LOBBY'], data, operation)

    def handle_start_game(data):
        process(INBOUND_EVENTS['START_GAME'], data,
                lambda session, sid, payload: session.start_game(sid))

    def handle_end_turn(data):
        process(INBOUND_EVENTS['END_TURN'], data,
                lambda session, sid, payload: session.end_turn(sid))

    def handle_next_turn(data):
        process(INBOUND_EVENTS['NEXT_TURN'], data,
                lambda session, sid, payload: session.next_turn(sid, payload.get('nextPlayerName')))

    def handle_start_vote(data):
        process(INBOUND_EVENTS['START_VOTE'], data,
                lambda session, sid, payload: session.start_vote(sid, payload.get('targetName')))

    def handle_cast_vote(data):
        process(INBOUND_EVENTS['CAST_VOTE'], data,
                lambda session, sid, payload: session.cast_vote(sid, payload.get('vote'), payload.get('voter')))

    def handle_chat(data):
        process(INBOUND_EVENTS['CHAT'], data,
                lambda session, sid, payload: session.chat(payload))

    def make_action_handler(inbound: str, outbound: str):
        def handle_action(data):
            process(inbound, data,
                    lambda session, sid, payload: session.apply_action(outbound, payload))
        return handle_action

    handlers: Dict[str, Callable] = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        INBOUND_EVENTS['JOIN']: handle_join,
        INBOUND_EVENTS['LEAVE']: handle_leave,
        INBOUND_EVENTS['GET_LOBBY']: handle_get_lobby,
        INBOUND_EVENTS['START_GAME']: handle_start_game,
        INBOUND_EVENTS['END_TURN']: handle_end_turn,
        INBOUND_EVENTS['NEXT_TURN']: handle_next_turn,
        INBOUND_EVENTS['START_VOTE']: handle_start_vote,
        INBOUND_EVENTS['CAST_VOTE']: handle_cast_vote,
        INBOUND_EVENTS['CHAT']: handle_chat,
    }
    for inbound, outbound in GAME_ACTIONS.items():
        handlers[inbound] = make_action_handler(inbound, outbound)

    for event_name, handler in handlers.items():
        socketio.on_event(event_name, handler, namespace=namespace)

    logger.info(f"Registered {len(handlers)} Socket.IO handlers on namespace {namespace}")
    return broadcaster
