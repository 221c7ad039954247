import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Socket server bind address
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
    # Vite dev server origins by default
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
    # Spelling the whole word loses the game
    TARGET_WORD = os.environ.get('TARGET_WORD', 'MAGIC').upper()
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
