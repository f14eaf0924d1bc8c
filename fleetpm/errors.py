from flask import jsonify
from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def code(self):
        return type(self).__name__


class ValidationError(AppError):
    status_code = 400


class InvalidHourMeter(AppError):
    status_code = 400


class InvalidFuelLevel(AppError):
    status_code = 400


class MissingMandatorySupply(AppError):
    status_code = 400


class IndexOutOfRange(AppError):
    status_code = 400


class NotFound(AppError):
    status_code = 404


class InsufficientStock(AppError):
    status_code = 409


class AlreadyActive(AppError):
    status_code = 409


class TransactionConflict(AppError):
    status_code = 409


class MaintenanceOverdue(AppError):
    status_code = 423


class ConfirmationRequired(AppError):
    """Soft warning: the caller must resubmit with explicit confirmation."""

    status_code = 428


def _error(message, status_code, code=None):
    payload = {"error": message}
    if code:
        payload["code"] = code
    return jsonify(payload), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return _error(err.message, err.status_code, err.code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error")
        return _error("Conflict. Resource already exists.", 409, TransactionConflict.__name__)

    @app.errorhandler(400)
    def bad_request(_err):
        return _error("Bad request", 400)

    @app.errorhandler(401)
    def unauthorized(_err):
        return _error("Unauthorized", 401)

    @app.errorhandler(403)
    def forbidden(_err):
        return _error("Forbidden", 403)

    @app.errorhandler(404)
    def not_found(_err):
        return _error("Not found", 404, NotFound.__name__)

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return _error("Method not allowed", 405)

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return _error("Internal server error", 500)
