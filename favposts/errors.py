from flask import jsonify


class ApiError(Exception):
    """Failure a handler reports to the client as ``{"error", "code"}``."""
    status = 400
    code = 'bad_request'

    def __init__(self, message, code=None, status=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status

    def to_response(self):
        return jsonify({'error': self.message, 'code': self.code}), self.status


class ValidationFailed(ApiError):
    status = 400
    code = 'validation_failed'


class InvalidCredentials(ApiError):
    status = 401
    code = 'invalid_credentials'


class NotFound(ApiError):
    status = 404
    code = 'not_found'


class Conflict(ApiError):
    status = 409
    code = 'conflict'


def error_response(message, code, status):
    return jsonify({'error': message, 'code': code}), status


def internal_error():
    # Details of unexpected failures stay in the log.
    return error_response('Une erreur interne est survenue.', 'internal_error', 500)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        return e.to_response()

    @app.errorhandler(404)
    def page_not_found(e):
        return error_response('Not found', 'not_found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response('Method not allowed', 'method_not_allowed', 405)
