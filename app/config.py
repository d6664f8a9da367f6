# app/config.py

import os


class Config:
    # Flask Secret Key
    SECRET_KEY = os.getenv('SECRET_KEY', 'your_secret_key')

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URI',
        'postgresql://postgres:postgres@db:5432/aqui_db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database connection pool configuration
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,       # Validate connections before using
        "pool_recycle": 1800,        # Recycle every 30 minutes
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"  # 30s query timeout
        }
    }

    # Upload limit for multipart requests (gallery uploads send several files)
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            'CORS_ORIGINS',
            'http://localhost:3000,http://localhost:3001'
        ).split(',')
        if origin.strip()
    ]

    # Mail Configuration
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.aqui.app")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() in ("true", "1", "t")
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() in ("true", "1", "t")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@aqui.app")
    MAIL_SUPPRESS_SEND = os.getenv("MAIL_SUPPRESS_SEND", "false").lower() in ("true", "1", "t")
    ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

    # Redis Configuration (for direct access via redis_client)
    REDIS_URL = os.getenv('REDIS_URL')
    REDIS_TLS_ENABLED = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET')
    CLOUDINARY_FOLDER = os.getenv('CLOUDINARY_FOLDER', 'aqui')

    # Customer / vendor tokens are issued by the auth provider
    AUTH_JWT_SECRET = os.getenv('AUTH_JWT_SECRET')
    AUTH_JWT_AUDIENCE = os.getenv('AUTH_JWT_AUDIENCE', 'authenticated')

    # Admin tokens are issued by this service
    ADMIN_JWT_SECRET = os.getenv('ADMIN_JWT_SECRET', SECRET_KEY)
    ADMIN_TOKEN_TTL_HOURS = int(os.getenv('ADMIN_TOKEN_TTL_HOURS', 24))
    ADMIN_COOKIE_SECURE = os.getenv('ADMIN_COOKIE_SECURE', 'true').lower() == 'true'

    # Admin login throttling (5 attempts per 15 minutes)
    LOGIN_RATE_LIMIT_ENABLED = os.getenv('LOGIN_RATE_LIMIT_ENABLED', 'true').lower() == 'true'
    LOGIN_MAX_ATTEMPTS = int(os.getenv('LOGIN_MAX_ATTEMPTS', 5))
    LOGIN_WINDOW_SECONDS = int(os.getenv('LOGIN_WINDOW_SECONDS', 15 * 60))

    # Live sessions
    LIVE_SESSION_CLOSING_HOURS = float(os.getenv('LIVE_SESSION_CLOSING_HOURS', 7))
    LIVE_SESSION_MAX_DURATION_MINUTES = int(os.getenv('LIVE_SESSION_MAX_DURATION_MINUTES', 24 * 60))

    # Gallery
    GALLERY_MAX_IMAGES = 10
    GALLERY_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB
    GALLERY_ALLOWED_TYPES = {'image/jpeg', 'image/png', 'image/webp'}
