# config.py
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# ---- Flask ----
SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-change-me')  # change this in env for security
PORT = int(os.environ.get('PORT', 5000))

# ---- Storage ----
DATA_DIR = os.environ.get('DATA_DIR', os.path.join(BASE_DIR, 'data'))
ANALYTICS_DATABASE = os.environ.get('ANALYTICS_DATABASE', os.path.join(DATA_DIR, 'analytics.db'))
USERS_DATABASE = os.environ.get('USERS_DATABASE', os.path.join(DATA_DIR, 'users.db'))

# ---- Bootstrap admin (created only when users.db is empty) ----
DEFAULT_ADMIN_NAME = os.environ.get('DEFAULT_ADMIN_NAME', 'Administrador')
DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@misrravb.com')
DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin123')

# ---- Twitch ----
TWITCH_CLIENT_ID = os.environ.get('TWITCH_CLIENT_ID', '')
TWITCH_CLIENT_SECRET = os.environ.get('TWITCH_CLIENT_SECRET', '')
TWITCH_CHANNEL = os.environ.get('TWITCH_CHANNEL', 'misrravb')
TWITCH_TIMEOUT = float(os.environ.get('TWITCH_TIMEOUT', 5))

# ---- Logging ----
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_FORMAT = os.environ.get('LOG_FORMAT', 'json')

# ---- Landing page links (platform, title, url, username) ----
LINKS = [
    {'platform': 'twitch', 'title': 'Twitch', 'url': 'https://www.twitch.tv/misrravb', 'username': '@misrravb'},
    {'platform': 'tiktok', 'title': 'TikTok', 'url': 'https://www.tiktok.com/@misrravb', 'username': '@misrravb'},
    {'platform': 'instagram', 'title': 'Instagram', 'url': 'https://www.instagram.com/misrravb', 'username': '@misrravb'},
    {'platform': 'twitter', 'title': 'Twitter / X', 'url': 'https://twitter.com/misrravb', 'username': '@misrravb'},
    {'platform': 'youtube', 'title': 'YouTube', 'url': 'https://www.youtube.com/@MisrraVB', 'username': '@MisrraVB'},
    {'platform': 'facebook', 'title': 'Facebook', 'url': 'https://www.facebook.com/MisrraVB', 'username': 'MisrraVB'},
]
