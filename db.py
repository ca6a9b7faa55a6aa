import logging
import os
import sqlite3

from flask import current_app, g

logger = logging.getLogger(__name__)

ANALYTICS_SCHEMA = '''
CREATE TABLE IF NOT EXISTS clicks (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  platform TEXT NOT NULL,
  url TEXT NOT NULL,
  clicked_at TEXT NOT NULL DEFAULT (datetime('now')),
  user_agent TEXT,
  ip_hash TEXT,
  referrer TEXT
);

-- one row per day, bumped on every click
CREATE TABLE IF NOT EXISTS daily_stats (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  date TEXT UNIQUE NOT NULL,
  total_clicks INTEGER DEFAULT 0,
  updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS devotionals (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  title TEXT NOT NULL,
  content TEXT NOT NULL,
  devotional_date TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'draft' CHECK(status IN ('draft', 'published')),
  created_at TEXT NOT NULL DEFAULT (datetime('now')),
  updated_at TEXT NOT NULL DEFAULT (datetime('now')),
  deleted_at TEXT
);

CREATE TABLE IF NOT EXISTS payments (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  payment_recorder_id TEXT NOT NULL,
  amount REAL NOT NULL CHECK(amount > 0),
  date TEXT NOT NULL,
  description TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'completed', 'cancelled')),
  created_at TEXT NOT NULL DEFAULT (datetime('now')),
  updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_clicks_platform ON clicks(platform);
CREATE INDEX IF NOT EXISTS idx_clicks_date ON clicks(date(clicked_at));
CREATE INDEX IF NOT EXISTS idx_clicks_datetime ON clicks(clicked_at);
CREATE INDEX IF NOT EXISTS idx_devotionals_date ON devotionals(devotional_date);
CREATE INDEX IF NOT EXISTS idx_payments_date ON payments(date);
CREATE INDEX IF NOT EXISTS idx_payments_status ON payments(status);
'''

USERS_SCHEMA = '''
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT UNIQUE NOT NULL,
  password_hash TEXT NOT NULL,
  role TEXT NOT NULL DEFAULT 'user' CHECK(role IN ('admin', 'user')),
  status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active', 'inactive')),
  created_at TEXT NOT NULL DEFAULT (datetime('now')),
  updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_users_email ON users(email);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
CREATE INDEX IF NOT EXISTS idx_users_status ON users(status);
'''


# ---- Connection helpers ----
def _connect(path):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA journal_mode = WAL')
    return conn


def get_analytics_db():
    db = getattr(g, '_analytics_db', None)
    if db is None:
        db = g._analytics_db = _connect(current_app.config['ANALYTICS_DATABASE'])
    return db


def get_users_db():
    db = getattr(g, '_users_db', None)
    if db is None:
        db = g._users_db = _connect(current_app.config['USERS_DATABASE'])
    return db


def close_connections(exception):
    for name in ('_analytics_db', '_users_db'):
        db = g.pop(name, None)
        if db is not None:
            db.close()


def init_db():
    """Create both schemas and make sure an admin account exists."""
    from users import bootstrap_admin

    get_analytics_db().executescript(ANALYTICS_SCHEMA)
    get_users_db().executescript(USERS_SCHEMA)
    bootstrap_admin()
    logger.info('Databases initialized', extra={
        'analytics': current_app.config['ANALYTICS_DATABASE'],
        'users': current_app.config['USERS_DATABASE'],
    })


def init_app(app):
    app.teardown_appcontext(close_connections)
