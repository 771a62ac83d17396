import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of allowed origins, '*' allows any
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    # Socket.IO endpoint the browser client connects to
    SOCKETIO_PATH = os.environ.get('SOCKETIO_PATH', 'api/socketio')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Used when a start message carries no puzzle count
    DEFAULT_TOTAL_PUZZLES = int(os.environ.get('DEFAULT_TOTAL_PUZZLES', '5'))
    # Puzzle image uploads
    MAX_IMAGE_BYTES = int(os.environ.get('MAX_IMAGE_BYTES', str(5 * 1024 * 1024)))
    ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp')
    IMAGE_SET = os.environ.get('IMAGE_SET', 'default')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
