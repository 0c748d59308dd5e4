"""
API Route Handlers for Trail by Elements.

Read-only HTTP views over the live session registry, for health checks
and operators. Contains no game logic - only request/response handling.
"""

import logging
from flask import jsonify

logger = logging.getLogger(__name__)


def register_api_handlers(app, registry, connection_manager):
    """
    Register all API route handlers.

    Args:
        app: Flask application instance
        registry: SessionRegistry holding the live sessions
        connection_manager: ConnectionManager tracking live connections
    """

    @app.route('/api/health')
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'Trail by Elements session server is running',
            'version': '1.0.0'
        })

    @app.route('/api/sessions')
    def list_sessions():
        """Get list of live sessions."""
        with registry.lock:
            sessions = [item.to_dict() for item in registry.list_sessions()]
        return jsonify({'sessions': sessions})

    @app.route('/api/sessions/<string:session_key>')
    def get_session(session_key):
        """Get the full state of one session."""
        with registry.lock:
            session = registry.find(session_key)
            if session is None:
                return jsonify({'error': 'Session not found'}), 404
            state = session.to_dict()
        return jsonify(state)

    @app.route('/api/stats')
    def get_stats():
        """Connection and session counters."""
        with registry.lock:
            stats = registry.get_stats()
        stats.update(connection_manager.get_connection_stats())
        return jsonify(stats)

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    logger.info("API handlers registered successfully")
