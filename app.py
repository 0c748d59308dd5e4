"""
Trail by Elements - Session Server

Flask-SocketIO backend that coordinates live game sessions for the
React frontend: rosters, turn order and majority-vote elimination.
App.py is purely server setup and handler registration.
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from config import settings
from handlers import SessionBroadcaster, register_api_handlers, register_socket_handlers
from lobby import ConnectionManager, SessionRegistry

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_vote_sweeper(socketio, registry, broadcaster: SessionBroadcaster, interval: int) -> None:
    """
    Background task that cancels votes past their deadline.

    Args:
        socketio: SocketIO instance (provides the async-mode aware sleep)
        registry: SessionRegistry to sweep
        broadcaster: Dispatcher for the resulting broadcasts
        interval: Seconds between sweeps
    """
    logger.info(f"Vote sweeper running every {interval}s")
    while True:
        socketio.sleep(interval)
        with registry.lock:
            for session, events in registry.expire_votes():
                broadcaster.dispatch(session, events)


def create_app(overrides: Optional[Dict[str, Any]] = None):
    """
    Application factory that creates and configures the Flask app.

    Args:
        overrides: Config values that replace the environment settings (used by tests)

    Returns:
        tuple: (app, socketio)
    """
    app = Flask(__name__)
    app.config.from_object(settings)
    if overrides:
        app.config.update(overrides)

    # CORS configuration for React frontend
    CORS(app, origins=app.config['CORS_ORIGINS'])

    # ProxyFix for deployment behind reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        ping_timeout=app.config['SOCKETIO_PING_TIMEOUT'],
        ping_interval=app.config['SOCKETIO_PING_INTERVAL']
    )

    registry = SessionRegistry(
        max_players=app.config['MAX_PLAYERS_PER_SESSION'],
        vote_timeout_seconds=app.config['VOTE_TIMEOUT_SECONDS']
    )
    connection_manager = ConnectionManager()
    app.extensions['session_registry'] = registry
    app.extensions['connection_manager'] = connection_manager

    logger.info("Registering handlers...")
    broadcaster = register_socket_handlers(socketio, registry, connection_manager)
    register_api_handlers(app, registry, connection_manager)

    if app.config['VOTE_TIMEOUT_SECONDS'] > 0 and not app.config.get('TESTING'):
        socketio.start_background_task(
            run_vote_sweeper, socketio, registry, broadcaster,
            app.config['VOTE_SWEEP_INTERVAL_SECONDS']
        )

    logger.info("Application initialization complete")
    return app, socketio


def main():
    """Main entry point for development server."""
    app, socketio = create_app()

    port = app.config['PORT']
    debug = app.config['DEBUG']

    logger.info(f"Starting Trail by Elements session server on port {port}")
    logger.info(f"Debug mode: {debug}")
    logger.info(f"CORS origins: {app.config['CORS_ORIGINS']}")

    socketio.run(app, debug=debug, port=port, host='0.0.0.0')


if __name__ == '__main__':
    main()
