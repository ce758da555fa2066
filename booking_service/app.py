import logging
import time
from datetime import date, datetime, timezone
from functools import wraps

from bson import ObjectId
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from booking_service.bookings import BookingService
from booking_service.clients import AuthClient, NotificationClient, RoomClient, WeatherClient
from booking_service.config import Config
from booking_service.errors import BookingError, Unauthenticated, ValidationFailed
from booking_service.store import BookingStore

logger = logging.getLogger(__name__)


def serialize_booking(booking):
    doc = {}
    for key, value in booking.items():
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        doc[key] = value
    return doc


def build_service(config):
    store = BookingStore.from_config(config)
    store.ensure_indexes()
    rooms = RoomClient(config.room_service_url, config.service_timeout)
    weather = WeatherClient(config)
    notifications = NotificationClient(
        config.notification_service_url,
        config.notification_timeout,
        config.notification_queue_size,
    )
    return BookingService(config, store, rooms, weather, notifications)


def create_app(config=None, service=None, auth=None):
    config = config or Config.from_env()
    service = service or build_service(config)
    auth = auth or AuthClient(config.auth_service_url, config.service_timeout)

    app = Flask(__name__)
    CORS(app)
    started_at = time.time()

    # Authentication middleware
    def require_auth(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            auth_header = request.headers.get("Authorization", "")
            if not auth_header.startswith("Bearer "):
                raise Unauthenticated("Access denied. No token provided.")
            g.principal = auth.verify(auth_header[len("Bearer "):])
            return f(*args, **kwargs)
        return decorated_function

    @app.errorhandler(BookingError)
    def handle_booking_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"success": False, "error": "Route not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "error": e.description}), e.code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.after_request
    def log_request(response):
        logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "success": True,
            "service": "booking-service",
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.time() - started_at, 3),
            "services": {
                "auth": config.auth_service_url,
                "room": config.room_service_url,
                "weather": config.weather_service_url,
                "notification": config.notification_service_url,
            },
        }), 200

    @app.route("/", methods=["GET"])
    def info():
        return jsonify({
            "success": True,
            "service": "Booking Service",
            "description": "Conference room booking service with weather-based pricing",
            "endpoints": {
                "health": "GET /health",
                "createBooking": "POST /bookings (authenticated)",
                "getUserBookings": "GET /bookings/user/<user_id> (authenticated)",
                "getBooking": "GET /bookings/<booking_id> (authenticated)",
                "cancelBooking": "DELETE /bookings/<booking_id> (authenticated)",
                "checkAvailability": "GET /bookings/room/<room_id>/availability (authenticated)",
                "getAllBookings": "GET /bookings (admin)",
            },
            "pricing": {
                "formula": "adjusted_price = base_price * (1 + deviation * factor)",
                "comfortable_temperature": config.comfortable_temperature,
                "adjustment_factor": config.price_adjustment_factor,
            },
        }), 200

    @app.route("/bookings", methods=["POST"])
    @require_auth
    def create_booking():
        """
        Create a booking
        Request body: {
            "room_id": "665f1c2e8a1b2c3d4e5f6a7b",
            "date": "2025-12-25"
        }
        """
        data = request.get_json(silent=True) or {}
        room_id = data.get("room_id")
        booking_date = data.get("date")

        errors = []
        if not room_id or not isinstance(room_id, str):
            errors.append({"field": "room_id", "message": "Room ID is required"})
        if not booking_date:
            errors.append({"field": "date", "message": "Booking date is required"})
        if errors:
            raise ValidationFailed(errors=errors)

        booking, breakdown = service.create_booking(g.principal, room_id, booking_date)
        return jsonify({
            "success": True,
            "message": "Booking created successfully",
            "booking": serialize_booking(booking),
            "price_breakdown": breakdown.to_dict(),
        }), 201

    @app.route("/bookings/user/<user_id>", methods=["GET"])
    @require_auth
    def get_user_bookings(user_id):
        bookings = service.get_user_bookings(g.principal, user_id, request.args.get("status"))
        return jsonify({
            "success": True,
            "count": len(bookings),
            "bookings": [serialize_booking(b) for b in bookings],
        }), 200

    @app.route("/bookings/<booking_id>", methods=["GET"])
    @require_auth
    def get_booking(booking_id):
        booking = service.get_booking(g.principal, booking_id)
        return jsonify({"success": True, "booking": serialize_booking(booking)}), 200

    @app.route("/bookings/<booking_id>", methods=["DELETE"])
    @require_auth
    def cancel_booking(booking_id):
        booking = service.cancel_booking(g.principal, booking_id)
        return jsonify({
            "success": True,
            "message": "Booking cancelled successfully",
            "booking": serialize_booking(booking),
        }), 200

    @app.route("/bookings/room/<room_id>/availability", methods=["GET"])
    @require_auth
    def check_availability(room_id):
        start_date = request.args.get("start_date")
        end_date = request.args.get("end_date")
        if not start_date or not end_date:
            raise ValidationFailed("Start date and end date are required")

        availability = service.check_availability(room_id, start_date, end_date)
        return jsonify({"success": True, **availability}), 200

    @app.route("/bookings", methods=["GET"])
    @require_auth
    def get_all_bookings():
        bookings = service.list_all_bookings(
            g.principal,
            status=request.args.get("status"),
            booking_date=request.args.get("date"),
            room_id=request.args.get("room_id"),
        )
        return jsonify({
            "success": True,
            "count": len(bookings),
            "bookings": [serialize_booking(b) for b in bookings],
        }), 200

    app.extensions["booking_service"] = service
    return app


def main():
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app = create_app(config)
    app.run(host="0.0.0.0", port=config.port, debug=False)


if __name__ == "__main__":
    main()
