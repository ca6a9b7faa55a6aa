import logging
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class PermissionDenied(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


def register_error_handlers(app):
    """Render every error as {"success": false, "error": ...} JSON."""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error(f'{error.__class__.__name__}: {error.message} - Path: {request.path}')
        else:
            logger.info(f'{error.__class__.__name__}: {error.message} - Path: {request.path}')
        return jsonify({'success': False, 'error': error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'success': False, 'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        logger.error(f'Unhandled exception - Path: {request.path}')
        logger.error(traceback.format_exc())
        return jsonify({'success': False, 'error': 'Internal server error'}), 500
