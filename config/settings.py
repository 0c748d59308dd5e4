import os
from dotenv import load_dotenv

from utils.constants import GAME_CONFIG

# Only load the .env file if we're not on Render (i.e., we are in a local environment)
if os.environ.get("RENDER") != "true":
    load_dotenv()

# Flask Configuration
SECRET_KEY = os.getenv('SECRET_KEY', 'a_very_secret_key_that_should_be_changed')
CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*').split(',')

# Socket.IO Configuration
SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')
SOCKETIO_PING_TIMEOUT = int(os.getenv('SOCKETIO_PING_TIMEOUT', 60))
SOCKETIO_PING_INTERVAL = int(os.getenv('SOCKETIO_PING_INTERVAL', 25))

# Session Configuration
MAX_PLAYERS_PER_SESSION = int(os.getenv('MAX_PLAYERS_PER_SESSION', GAME_CONFIG['MAX_PLAYERS_PER_SESSION']))
VOTE_TIMEOUT_SECONDS = int(os.getenv('VOTE_TIMEOUT_SECONDS', GAME_CONFIG['VOTE_TIMEOUT_SECONDS']))
VOTE_SWEEP_INTERVAL_SECONDS = int(os.getenv('VOTE_SWEEP_INTERVAL_SECONDS', GAME_CONFIG['VOTE_SWEEP_INTERVAL_SECONDS']))

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Server Configuration
PORT = int(os.getenv('PORT', 5000))
DEBUG = os.getenv('FLASK_ENV', 'production') == 'development'
