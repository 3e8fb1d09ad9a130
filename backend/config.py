import os


def _env_list(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    CORS_ORIGINS = _env_list('CORS_ORIGINS', [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])
    # Board rules
    TRACK_LENGTH = int(os.environ.get('TRACK_LENGTH', '8'))
    STAGING_SLOTS = int(os.environ.get('STAGING_SLOTS', '10'))
    TOKENS_PER_PLAYER = int(os.environ.get('TOKENS_PER_PLAYER', '7'))
    INSTANT_WIN_STAGED = int(os.environ.get('INSTANT_WIN_STAGED', '3'))
    # Room sizes
    MAX_SEATS = int(os.environ.get('MAX_SEATS', '4'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Shuffle turn order once at game start
    SHUFFLE_SEATS = os.environ.get('SHUFFLE_SEATS', '1').lower() not in ('0', 'false', 'no')
    # Optional: fixed seed for dice and shuffles. Unset uses system entropy.
    RNG_SEED = os.environ.get('RNG_SEED')
