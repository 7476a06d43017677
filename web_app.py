# Flask JSON API: one endpoint per user action over a shared BloodBank
from flask import Flask, request, jsonify
from flask_cors import CORS
from loguru import logger
from werkzeug.exceptions import HTTPException

import database
from errors import (
    BloodBankError,
    InsufficientUnits,
    InvalidState,
    RecordNotFound,
    StorageError,
    ValidationError,
)
from models import DIRECTIONS


def _error_status(exc: BloodBankError) -> int:
    if isinstance(exc, RecordNotFound):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, (InsufficientUnits, InvalidState)):
        return 409
    if isinstance(exc, StorageError):
        return 500
    return 400


def create_app(bank=None, **config):
    app = Flask(__name__)
    app.config.from_mapping(DATA_DIR=str(database.DATA_DIR), LOW_STOCK_THRESHOLD=database.LOW_STOCK_THRESHOLD)
    app.config.from_prefixed_env("BLOODBANK")
    app.config.update(config)
    CORS(app)

    if bank is None:
        bank = database.BloodBank.open(app.config["DATA_DIR"])
    app.extensions["bloodbank"] = bank

    def handle_bank_error(exc):
        status = _error_status(exc)
        logger.warning("{} {} failed: {}", request.method, request.path, exc)
        return jsonify({"error": str(exc)}), status

    def handle_http_error(exc):
        return jsonify({"error": exc.description}), exc.code

    app.register_error_handler(BloodBankError, handle_bank_error)
    app.register_error_handler(HTTPException, handle_http_error)

    def body():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Expected a JSON object body")
        return data

    @app.route("/donors", methods=["GET", "POST"])
    def donors():
        if request.method == "POST":
            d = body()
            donor = bank.donors.add(d.get("name"), d.get("blood_type"), d.get("age"),
                                    d.get("contact"), d.get("last_donation"))
            return jsonify(donor.to_dict()), 201
        q = request.args.get("q")
        rows = bank.donors.search(q) if q else bank.donors.list()
        return jsonify([x.to_dict() for x in rows])

    @app.route("/donors/<donor_id>", methods=["GET", "PUT", "DELETE"])
    def donor_detail(donor_id):
        if request.method == "DELETE":
            bank.donors.delete(donor_id)
            return jsonify({"deleted": True})
        if request.method == "PUT":
            return jsonify(bank.donors.edit(donor_id, **body()).to_dict())
        return jsonify(bank.donors.get(donor_id).to_dict())

    @app.route("/inventory", methods=["GET"])
    def inventory():
        return jsonify([{"blood_type": bt, "units": units} for bt, units in bank.inventory.list()])

    @app.route("/inventory/alerts", methods=["GET"])
    def inventory_alerts():
        threshold = request.args.get("threshold", app.config["LOW_STOCK_THRESHOLD"], type=int)
        low, out = bank.inventory.low_stock(threshold)
        return jsonify({"low": low, "out": out, "threshold": threshold})

    @app.route("/inventory/<blood_type>/<direction>", methods=["POST"])
    def adjust_inventory(blood_type, direction):
        if direction not in DIRECTIONS:
            return jsonify({"error": "Direction must be one of: " + ", ".join(DIRECTIONS)}), 404
        units = bank.inventory.adjust(blood_type, body().get("units"), direction)
        return jsonify({"blood_type": database.normalize_blood_group(blood_type), "units": units})

    @app.route("/requests", methods=["GET", "POST"])
    def requests_():
        if request.method == "POST":
            r = body()
            created = bank.requests.create(r.get("requester"), r.get("blood_type"), r.get("units"))
            return jsonify(created.to_dict()), 201
        return jsonify([x.to_dict() for x in bank.requests.list()])

    @app.route("/requests/<request_id>/fulfill", methods=["POST"])
    def fulfill_request(request_id):
        return jsonify(bank.requests.fulfill(request_id).to_dict())

    @app.route("/requests/<request_id>/cancel", methods=["POST"])
    def cancel_request(request_id):
        return jsonify(bank.requests.cancel(request_id).to_dict())

    @app.route("/report", methods=["GET"])
    def report():
        donors_total, units_total = bank.totals()
        return jsonify({"report": bank.report(), "donors": donors_total, "units": units_total})

    @app.route("/save", methods=["POST"])
    def save_all():
        bank.save_all()
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
