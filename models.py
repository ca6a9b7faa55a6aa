# models.py
# Data access for analytics.db: clicks, daily_stats, payments and devotionals.
import logging

from db import get_analytics_db

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = ('pending', 'completed', 'cancelled')
DEVOTIONAL_STATUSES = ('draft', 'published')


def _build_update(fields, allowed):
    sets, values = [], []
    for column in allowed:
        if fields.get(column) is not None:
            sets.append(f'{column} = ?')
            values.append(fields[column])
    return sets, values


# ---- Clicks ----
def register_click(platform, url, user_agent=None, ip_hash=None, referrer=None, clicked_at=None):
    """Store a click and bump the daily total for the click's date. Returns the click id."""
    db = get_analytics_db()
    cur = db.execute('''
      INSERT INTO clicks (platform, url, clicked_at, user_agent, ip_hash, referrer)
      VALUES (?, ?, COALESCE(?, datetime('now')), ?, ?, ?)
    ''', (platform, url, clicked_at, user_agent or None, ip_hash or None, referrer or None))
    db.execute('''
      INSERT INTO daily_stats (date, total_clicks, updated_at)
      VALUES (date(COALESCE(?, 'now')), 1, datetime('now'))
      ON CONFLICT(date) DO UPDATE SET
        total_clicks = total_clicks + 1,
        updated_at = datetime('now')
    ''', (clicked_at,))
    db.commit()
    logger.info('Click registered', extra={'click_id': cur.lastrowid, 'platform': platform})
    return cur.lastrowid


def get_total_clicks():
    row = get_analytics_db().execute('SELECT COUNT(*) AS count FROM clicks').fetchone()
    return row['count'] if row else 0


def get_clicks_by_platform():
    rows = get_analytics_db().execute('''
      SELECT platform, COUNT(*) AS count
      FROM clicks
      GROUP BY platform
      ORDER BY count DESC
    ''').fetchall()
    return [dict(r) for r in rows]


def get_clicks_last_days(days=7):
    rows = get_analytics_db().execute('''
      SELECT date(clicked_at) AS date, COUNT(*) AS count
      FROM clicks
      WHERE clicked_at >= datetime('now', '-' || ? || ' days')
      GROUP BY date(clicked_at)
      ORDER BY date(clicked_at)
    ''', (int(days),)).fetchall()
    return [dict(r) for r in rows]


def get_recent_clicks():
    """Number of clicks in the last 24 hours."""
    row = get_analytics_db().execute('''
      SELECT COUNT(*) AS count
      FROM clicks
      WHERE clicked_at >= datetime('now', '-24 hours')
    ''').fetchone()
    return row['count'] if row else 0


def get_top_links(limit=5):
    rows = get_analytics_db().execute('''
      SELECT platform, url, COUNT(*) AS count
      FROM clicks
      GROUP BY url
      ORDER BY count DESC
      LIMIT ?
    ''', (limit,)).fetchall()
    return [dict(r) for r in rows]


def get_latest_clicks(limit=50):
    rows = get_analytics_db().execute('''
      SELECT id, platform, url, clicked_at, user_agent, referrer
      FROM clicks ORDER BY id DESC LIMIT ?
    ''', (limit,)).fetchall()
    return [dict(r) for r in rows]


def get_daily_totals(days=30):
    rows = get_analytics_db().execute('''
      SELECT date, total_clicks
      FROM daily_stats
      WHERE date >= date('now', '-' || ? || ' days')
      ORDER BY date
    ''', (int(days),)).fetchall()
    return {r['date']: r['total_clicks'] for r in rows}


def get_all_stats(days=7):
    return {
        'totalClicks': get_total_clicks(),
        'clicksLast24h': get_recent_clicks(),
        'clicksByPlatform': get_clicks_by_platform(),
        'trend': get_clicks_last_days(days),
        'topLinks': get_top_links(5),
    }


# ---- Payments ----
def _payment_to_dict(row):
    return {
        'id': row['id'],
        'paymentRecorderId': row['payment_recorder_id'],
        'amount': row['amount'],
        'date': row['date'],
        'description': row['description'],
        'status': row['status'],
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def create_payment(recorder_id, amount, date, description, status='pending'):
    db = get_analytics_db()
    cur = db.execute('''
      INSERT INTO payments (payment_recorder_id, amount, date, description, status)
      VALUES (?, ?, ?, ?, ?)
    ''', (recorder_id, amount, date, description, status))
    db.commit()
    logger.info('Payment created', extra={'payment_id': cur.lastrowid, 'status': status})
    return get_payment(cur.lastrowid)


def get_payment(payment_id):
    row = get_analytics_db().execute('SELECT * FROM payments WHERE id = ?', (payment_id,)).fetchone()
    return _payment_to_dict(row) if row else None


def list_payments(start_date=None, end_date=None, status=None, recorder_id=None):
    sql = 'SELECT * FROM payments WHERE 1=1'
    params = []
    if start_date:
        sql += ' AND date >= ?'
        params.append(start_date)
    if end_date:
        sql += ' AND date <= ?'
        params.append(end_date)
    if status:
        sql += ' AND status = ?'
        params.append(status)
    if recorder_id:
        sql += ' AND payment_recorder_id = ?'
        params.append(recorder_id)
    sql += ' ORDER BY date DESC, id DESC'
    rows = get_analytics_db().execute(sql, params).fetchall()
    return [_payment_to_dict(r) for r in rows]


def update_payment(payment_id, recorder_id=None, amount=None, date=None, description=None, status=None):
    if get_payment(payment_id) is None:
        return None
    sets, values = _build_update({
        'payment_recorder_id': recorder_id,
        'amount': amount,
        'date': date,
        'description': description,
        'status': status,
    }, ('payment_recorder_id', 'amount', 'date', 'description', 'status'))
    if sets:
        sets.append("updated_at = datetime('now')")
        db = get_analytics_db()
        db.execute(f'UPDATE payments SET {", ".join(sets)} WHERE id = ?', (*values, payment_id))
        db.commit()
        logger.info('Payment updated', extra={'payment_id': payment_id})
    return get_payment(payment_id)


def delete_payment(payment_id):
    db = get_analytics_db()
    cur = db.execute('DELETE FROM payments WHERE id = ?', (payment_id,))
    db.commit()
    if cur.rowcount:
        logger.info('Payment deleted', extra={'payment_id': payment_id})
    return cur.rowcount > 0


def get_payment_summary():
    """Totals for completed and pending payments; cancelled ones are left out."""
    row = get_analytics_db().execute('''
      SELECT
        COALESCE(SUM(CASE WHEN status = 'completed' THEN amount END), 0) AS total_completed,
        COALESCE(SUM(CASE WHEN status = 'pending' THEN amount END), 0) AS total_pending,
        COUNT(CASE WHEN status = 'completed' THEN 1 END) AS count_completed,
        COUNT(CASE WHEN status = 'pending' THEN 1 END) AS count_pending
      FROM payments
    ''').fetchone()
    return {
        'totalCompleted': row['total_completed'],
        'totalPending': row['total_pending'],
        'totalAmount': row['total_completed'] + row['total_pending'],
        'countCompleted': row['count_completed'],
        'countPending': row['count_pending'],
    }


# ---- Devotionals ----
def create_devotional(title, content, devotional_date, status='draft'):
    db = get_analytics_db()
    cur = db.execute('''
      INSERT INTO devotionals (title, content, devotional_date, status)
      VALUES (?, ?, ?, ?)
    ''', (title, content, devotional_date, status))
    db.commit()
    logger.info('Devotional created', extra={'devotional_id': cur.lastrowid, 'status': status})
    return get_devotional(cur.lastrowid)


def get_devotional(devotional_id):
    row = get_analytics_db().execute('SELECT * FROM devotionals WHERE id = ?', (devotional_id,)).fetchone()
    return dict(row) if row else None


def list_devotionals(status=None, include_deleted=False):
    sql = 'SELECT * FROM devotionals WHERE 1=1'
    params = []
    if not include_deleted:
        sql += ' AND deleted_at IS NULL'
    if status:
        sql += ' AND status = ?'
        params.append(status)
    sql += ' ORDER BY devotional_date DESC, id DESC'
    return [dict(r) for r in get_analytics_db().execute(sql, params).fetchall()]


def update_devotional(devotional_id, title=None, content=None, devotional_date=None, status=None):
    """Edit a live devotional. Returns None when it is missing or soft-deleted."""
    current = get_devotional(devotional_id)
    if current is None or current['deleted_at'] is not None:
        return None
    sets, values = _build_update({
        'title': title,
        'content': content,
        'devotional_date': devotional_date,
        'status': status,
    }, ('title', 'content', 'devotional_date', 'status'))
    if sets:
        sets.append("updated_at = datetime('now')")
        db = get_analytics_db()
        db.execute(f'UPDATE devotionals SET {", ".join(sets)} WHERE id = ?', (*values, devotional_id))
        db.commit()
        logger.info('Devotional updated', extra={'devotional_id': devotional_id})
    return get_devotional(devotional_id)


def soft_delete_devotional(devotional_id):
    db = get_analytics_db()
    cur = db.execute('''
      UPDATE devotionals SET deleted_at = datetime('now'), updated_at = datetime('now')
      WHERE id = ? AND deleted_at IS NULL
    ''', (devotional_id,))
    db.commit()
    if cur.rowcount:
        logger.info('Devotional soft-deleted', extra={'devotional_id': devotional_id})
    return cur.rowcount > 0


def restore_devotional(devotional_id):
    db = get_analytics_db()
    cur = db.execute('''
      UPDATE devotionals SET deleted_at = NULL, updated_at = datetime('now')
      WHERE id = ? AND deleted_at IS NOT NULL
    ''', (devotional_id,))
    db.commit()
    if cur.rowcount:
        logger.info('Devotional restored', extra={'devotional_id': devotional_id})
    return cur.rowcount > 0


def get_published_devotionals(limit=10):
    rows = get_analytics_db().execute('''
      SELECT id, title, content, devotional_date, created_at, updated_at
      FROM devotionals
      WHERE status = 'published' AND deleted_at IS NULL
      ORDER BY devotional_date DESC, id DESC
      LIMIT ?
    ''', (limit,)).fetchall()
    return [dict(r) for r in rows]


def count_devotionals():
    row = get_analytics_db().execute('''
      SELECT
        COUNT(CASE WHEN deleted_at IS NULL THEN 1 END) AS active,
        COUNT(CASE WHEN deleted_at IS NULL AND status = 'published' THEN 1 END) AS published,
        COUNT(CASE WHEN deleted_at IS NOT NULL THEN 1 END) AS deleted
      FROM devotionals
    ''').fetchone()
    return dict(row)
