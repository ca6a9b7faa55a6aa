# users.py
# Data access for users.db plus password hashing.
import hashlib
import hmac
import logging
import secrets
import sqlite3

from flask import current_app

from db import get_users_db
from errors import ConflictError

logger = logging.getLogger(__name__)

ROLES = ('admin', 'user')
STATUSES = ('active', 'inactive')

PBKDF2_ITERATIONS = 100000
PBKDF2_KEYLEN = 64

PUBLIC_COLUMNS = 'id, name, email, role, status, created_at, updated_at'


# ---- Passwords ----
def _pbkdf2(password, salt):
    return hashlib.pbkdf2_hmac('sha512', password.encode(), salt.encode(),
                               PBKDF2_ITERATIONS, PBKDF2_KEYLEN).hex()


def hash_password(password):
    """Return "salt:hash" with a random 16 byte hex salt."""
    salt = secrets.token_hex(16)
    return f'{salt}:{_pbkdf2(password, salt)}'


def verify_password(password, stored_hash):
    if not stored_hash or ':' not in stored_hash:
        return False
    salt, expected = stored_hash.split(':', 1)
    if not salt or not expected:
        return False
    return hmac.compare_digest(_pbkdf2(password, salt), expected)


def normalize_email(email):
    return email.strip().lower()


# ---- Queries ----
def create_user(name, email, password, role='user', status='active'):
    db = get_users_db()
    email = normalize_email(email)
    try:
        cur = db.execute('''
          INSERT INTO users (name, email, password_hash, role, status)
          VALUES (?, ?, ?, ?, ?)
        ''', (name, email, hash_password(password), role, status))
        db.commit()
    except sqlite3.IntegrityError as e:
        db.rollback()
        if 'users.email' in str(e):
            raise ConflictError('A user with that email already exists')
        raise
    logger.info('User created', extra={'user_id': cur.lastrowid, 'role': role})
    return get_user_by_id(cur.lastrowid)


def get_user_by_id(user_id):
    row = get_users_db().execute(f'SELECT {PUBLIC_COLUMNS} FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_user_by_email(email):
    row = get_users_db().execute(f'SELECT {PUBLIC_COLUMNS} FROM users WHERE email = ?',
                                 (normalize_email(email),)).fetchone()
    return dict(row) if row else None


def get_user_with_password(email):
    row = get_users_db().execute('SELECT * FROM users WHERE email = ?', (normalize_email(email),)).fetchone()
    return dict(row) if row else None


def get_users(search=None, role=None, status=None, limit=100, offset=0):
    """Filtered page of users plus the total matching count."""
    where = 'WHERE 1=1'
    params = []
    if search:
        where += ' AND (name LIKE ? OR email LIKE ?)'
        params.extend([f'%{search}%', f'%{search}%'])
    if role:
        where += ' AND role = ?'
        params.append(role)
    if status:
        where += ' AND status = ?'
        params.append(status)

    db = get_users_db()
    total = db.execute(f'SELECT COUNT(*) AS total FROM users {where}', params).fetchone()['total']
    rows = db.execute(f'''
      SELECT {PUBLIC_COLUMNS}
      FROM users {where}
      ORDER BY created_at DESC, id DESC
      LIMIT ? OFFSET ?
    ''', (*params, limit, offset)).fetchall()
    return [dict(r) for r in rows], total


def count_users():
    return get_users_db().execute('SELECT COUNT(*) AS count FROM users').fetchone()['count']


def update_user(user_id, name=None, email=None, role=None, status=None):
    if get_user_by_id(user_id) is None:
        return None
    sets, values = [], []
    if name is not None:
        sets.append('name = ?')
        values.append(name)
    if email is not None:
        sets.append('email = ?')
        values.append(normalize_email(email))
    if role is not None:
        sets.append('role = ?')
        values.append(role)
    if status is not None:
        sets.append('status = ?')
        values.append(status)
    if not sets:
        return get_user_by_id(user_id)

    sets.append("updated_at = datetime('now')")
    db = get_users_db()
    try:
        db.execute(f'UPDATE users SET {", ".join(sets)} WHERE id = ?', (*values, user_id))
        db.commit()
    except sqlite3.IntegrityError as e:
        db.rollback()
        if 'users.email' in str(e):
            raise ConflictError('A user with that email already exists')
        raise
    logger.info('User updated', extra={'user_id': user_id})
    return get_user_by_id(user_id)


def update_user_password(user_id, new_password):
    db = get_users_db()
    cur = db.execute('''
      UPDATE users SET password_hash = ?, updated_at = datetime('now') WHERE id = ?
    ''', (hash_password(new_password), user_id))
    db.commit()
    if cur.rowcount:
        logger.info('User password updated', extra={'user_id': user_id})
    return cur.rowcount > 0


def _set_status(user_id, status):
    db = get_users_db()
    cur = db.execute('''
      UPDATE users SET status = ?, updated_at = datetime('now') WHERE id = ?
    ''', (status, user_id))
    db.commit()
    return cur.rowcount > 0


def activate_user(user_id):
    return _set_status(user_id, 'active')


def deactivate_user(user_id):
    return _set_status(user_id, 'inactive')


def delete_user(user_id):
    db = get_users_db()
    cur = db.execute('DELETE FROM users WHERE id = ?', (user_id,))
    db.commit()
    if cur.rowcount:
        logger.info('User deleted', extra={'user_id': user_id})
    return cur.rowcount > 0


def login_user(email, password):
    """Public user dict on success; None for unknown, inactive or wrong password."""
    user = get_user_with_password(email)
    if not user or user['status'] != 'active':
        return None
    if not verify_password(password, user['password_hash']):
        return None
    user.pop('password_hash')
    return user


def bootstrap_admin():
    if count_users() > 0:
        return None
    cfg = current_app.config
    admin = create_user(cfg['DEFAULT_ADMIN_NAME'], cfg['DEFAULT_ADMIN_EMAIL'],
                        cfg['DEFAULT_ADMIN_PASSWORD'], role='admin')
    logger.warning(f'Default admin user created: {admin["email"]}. Change its password.')
    return admin
