import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max request size
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB max invoice file
    ALLOWED_EXTENSIONS = {'pdf', 'jpg', 'jpeg', 'png', 'doc', 'docx', 'txt'}

    # Gemini settings (the API key is entered by the user, never configured)
    GEMINI_BASE_URL = os.environ.get('GEMINI_BASE_URL') or "https://generativelanguage.googleapis.com"
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL') or "gemini-2.0-flash"
    GEMINI_TIMEOUT = float(os.environ.get('GEMINI_TIMEOUT') or 60)

    # In-memory sessions
    SESSION_IDLE_TIMEOUT = float(os.environ.get('SESSION_IDLE_TIMEOUT') or 3600)
    MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS') or 500)
