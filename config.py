from dotenv import load_dotenv
import os

dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=dotenv_path)

# Unset means the in-memory store
DATABASE_URL = os.getenv('DATABASE_URL')

SESSION_TTL = int(os.getenv('SESSION_TTL', '86400'))
SESSION_MAX = int(os.getenv('SESSION_MAX', '10000'))
COOKIE_SECURE = os.getenv('COOKIE_SECURE', 'false').lower() in ('1', 'true', 'yes')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '8000'))
