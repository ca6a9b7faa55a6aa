# twitch.py
# Live status for the landing page, read from the Twitch Helix API.
import logging
import time

import requests

from errors import AppError

logger = logging.getLogger(__name__)

TOKEN_URL = 'https://id.twitch.tv/oauth2/token'
HELIX_URL = 'https://api.twitch.tv/helix'


class TwitchError(AppError):
    status_code = 500


def offline_status(**extra):
    status = {'isLive': False, 'viewers': 0, 'title': '', 'game': ''}
    status.update(extra)
    return status


class TwitchClient:
    def __init__(self, client_id, client_secret, channel, timeout=5):
        self.client_id = client_id
        self.client_secret = client_secret
        self.channel = channel
        self.timeout = timeout
        self._access_token = None
        self._token_expiry = 0

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    def _get_access_token(self):
        if self._access_token and time.monotonic() < self._token_expiry:
            return self._access_token

        r = requests.post(TOKEN_URL, data={
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'client_credentials',
        }, timeout=self.timeout)
        if not r.ok:
            raise TwitchError('Failed to get Twitch access token')

        data = r.json()
        if not data.get('access_token'):
            raise TwitchError('Twitch token response had no access token')
        self._access_token = data['access_token']
        # refresh one minute before it actually expires
        self._token_expiry = time.monotonic() + data.get('expires_in', 0) - 60
        return self._access_token

    def _helix(self, path, params, error):
        r = requests.get(f'{HELIX_URL}/{path}', params=params, headers={
            'Client-ID': self.client_id,
            'Authorization': f'Bearer {self._get_access_token()}',
        }, timeout=self.timeout)
        if not r.ok:
            raise TwitchError(error)
        return r.json().get('data') or []

    def get_live_status(self):
        if not self.configured:
            return offline_status(error='Twitch credentials not configured', fallback=True)

        try:
            users = self._helix('users', {'login': self.channel}, 'Failed to fetch user data')
            if not users:
                return offline_status()

            streams = self._helix('streams', {'user_id': users[0]['id']}, 'Failed to fetch stream data')
        except requests.RequestException as e:
            logger.error(f'Twitch request failed: {e}')
            raise TwitchError('Twitch API unreachable')

        if not streams:
            return offline_status(thumbnail='', startedAt='')

        stream = streams[0]
        thumbnail = (stream.get('thumbnail_url') or '').replace('{width}', '320').replace('{height}', '180')
        return {
            'isLive': True,
            'viewers': stream.get('viewer_count') or 0,
            'title': stream.get('title') or '',
            'game': stream.get('game_name') or '',
            'thumbnail': thumbnail,
            'startedAt': stream.get('started_at') or '',
        }
