from flask import jsonify, request
from marshmallow import ValidationError


class LuxBrokerError(Exception):
    """Base error; carries the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        body = {'error': self.message}
        if self.details:
            body['details'] = self.details
        return body


class RequestValidationError(LuxBrokerError):
    status_code = 400


class NotFoundError(LuxBrokerError):
    status_code = 404


class ConflictError(LuxBrokerError):
    status_code = 409


class DuplicateSaleError(ConflictError):
    pass


class PersistenceError(LuxBrokerError):
    status_code = 500


def register_error_handlers(app):

    @app.errorhandler(LuxBrokerError)
    def handle_luxbroker_error(error):
        if error.status_code >= 500:
            app.logger.error('%s %s failed: %s', request.method, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_schema_error(error):
        return jsonify({'error': 'Invalid request', 'details': error.messages}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'API endpoint not found',
            'message': f'The endpoint {request.path} does not exist.'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'error': 'Internal server error',
            'message': 'Something went wrong on the server.'
        }), 500
