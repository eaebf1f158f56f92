"""Flask web application for fleet trip tracking."""

from flask import Flask, Response, g, jsonify, redirect, request, session, url_for

import reports
import settings
from logging_config import setup_logging
from models import (
    AuthenticationError,
    AuthorizationError,
    Fleet,
    FleetError,
    InconsistentStateError,
    NotFoundError,
    PersistenceError,
    ReportError,
    Session,
    TripController,
    UserDirectory,
    ValidationError,
    VehicleRegistry,
    to_row,
)
from models.timestamps import format_local, utc_now
from models.users import CONFIRM_DELETE

REPORT_NOT_FOUND = (
    "Laporan dengan ID yang diberikan tidak dapat ditemukan atau data tidak lengkap."
)

# Most specific first
ERROR_STATUS = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InconsistentStateError, 409),
    (ReportError, 404),
    (PersistenceError, 502),
]


def status_for(error: FleetError) -> int:
    """HTTP status code for a fleet error."""
    for cls, code in ERROR_STATUS:
        if isinstance(error, cls):
            return code
    return 500


def vehicle_json(vehicle):
    data = to_row(vehicle)
    data["name"] = vehicle.name
    return data


def mutation_json(mutation, include_photo=True):
    data = to_row(mutation)
    if not include_photo:
        data.pop("driverPhoto", None)
    return data


def user_json(user):
    """User without the password."""
    return {"id": user.id, "username": user.username, "role": user.role.value}


def alert_json(alert):
    return {
        "vehicleId": alert.vehicle.id,
        "vehicle": alert.vehicle.name,
        "kind": alert.kind.value,
        "reason": alert.reason,
        "dueDate": alert.due_date.isoformat(),
    }


def payload():
    """JSON body of the request, or form fields when not JSON."""
    return request.get_json(silent=True) or request.form.to_dict()


def create_app(gateway=None, note_generator=None) -> Flask:
    """
    Build the application.

    The gateway defaults to the configured store; the fleet state is read
    from it on every request, so the store is always the source of truth.
    """
    app = Flask(__name__)
    app.secret_key = settings.SECRET_KEY
    app.config["GATEWAY"] = gateway or settings.make_gateway()
    app.config["NOTE_GENERATOR"] = note_generator

    def state():
        """Fleet, session and controllers for the current request."""
        if "fleet" not in g:
            gw = app.config["GATEWAY"]
            g.fleet = Fleet.load(gw)
            g.session = Session()
            user_id = session.get("user_id")
            if user_id:
                user = g.fleet.find_user(user_id)
                if user is None:
                    session.pop("user_id", None)
                else:
                    g.session.open(user)
            g.trips = TripController(
                g.fleet, gw, g.session, notes=app.config["NOTE_GENERATOR"]
            )
            g.registry = VehicleRegistry(g.fleet, gw, g.session)
            g.users = UserDirectory(g.fleet, gw, g.session)
        return g

    @app.errorhandler(FleetError)
    def handle_fleet_error(error):
        code = status_for(error)
        if code >= 500:
            app.logger.error("Store error on %s: %s", request.path, error.message)
        return jsonify({"error": error.message}), code

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    @app.route("/api/login", methods=["POST"])
    def login():
        data = payload()
        user = state().users.authenticate(
            data.get("username", ""), data.get("password", "")
        )
        session["user_id"] = user.id
        return jsonify(
            {"user": user_json(user), "initialSetup": g.fleet.initial_setup}
        )

    @app.route("/api/logout", methods=["POST"])
    def logout():
        session.pop("user_id", None)
        return jsonify({"ok": True})

    @app.route("/api/me")
    def me():
        s = state().session
        if not s.is_authenticated:
            raise AuthenticationError("Silakan masuk terlebih dahulu.")
        return jsonify({"user": user_json(s.user), "initialSetup": g.fleet.initial_setup})

    # -------------------------------------------------------------------------
    # Vehicles and trips
    # -------------------------------------------------------------------------

    @app.route("/api/vehicles")
    def list_vehicles():
        st = state()
        alerts = st.fleet.alerts(utc_now())
        return jsonify(
            {
                "vehicles": [vehicle_json(v) for v in st.fleet.vehicles],
                "alerts": [alert_json(a) for a in alerts],
            }
        )

    @app.route("/api/vehicles", methods=["POST"])
    def add_vehicle():
        data = payload()
        vehicle = state().registry.add_vehicle(
            data.get("plateNumber", ""),
            data.get("brand", ""),
            data.get("year"),
            data.get("color", ""),
            data.get("lastServiceDate"),
            data.get("lastOilChangeDate"),
            data.get("lastAccuCheckDate"),
        )
        return jsonify(vehicle_json(vehicle)), 201

    @app.route("/api/vehicles/<vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: str):
        state().registry.delete_vehicle(vehicle_id)
        return jsonify({"deleted": vehicle_id})

    @app.route("/api/vehicles/<vehicle_id>/select")
    def select_vehicle(vehicle_id: str):
        st = state()
        intent = st.trips.select_vehicle(st.fleet.get_vehicle(vehicle_id))
        return jsonify(
            {
                "action": intent.action,
                "vehicle": vehicle_json(intent.vehicle),
                "mutation": mutation_json(intent.mutation) if intent.mutation else None,
            }
        )

    @app.route("/api/vehicles/<vehicle_id>/start", methods=["POST"])
    def start_trip(vehicle_id: str):
        st = state()
        data = payload()
        mutation = st.trips.start_trip(
            st.fleet.get_vehicle(vehicle_id),
            data.get("driver", ""),
            data.get("destination", ""),
            data.get("startKm"),
            data.get("driverPhoto"),
        )
        return jsonify(mutation_json(mutation)), 201

    @app.route("/api/vehicles/<vehicle_id>/end", methods=["POST"])
    def end_trip(vehicle_id: str):
        st = state()
        data = payload()
        intent = st.trips.select_vehicle(st.fleet.get_vehicle(vehicle_id))
        if intent.mutation is None:
            raise ValidationError(
                f"Kendaraan {intent.vehicle.plate_number} tidak sedang dalam perjalanan."
            )
        completed = st.trips.end_trip(intent.mutation, data.get("endKm"), data.get("notes"))
        return jsonify(
            {
                "mutation": mutation_json(completed),
                "reportUrl": reports.report_url(completed.id, request.host_url),
            }
        )

    @app.route("/api/vehicles/<vehicle_id>/maintenance", methods=["POST"])
    def acknowledge_maintenance(vehicle_id: str):
        st = state()
        vehicle = st.trips.acknowledge_maintenance(
            st.fleet.get_vehicle(vehicle_id), payload().get("kind", "")
        )
        return jsonify(vehicle_json(vehicle))

    @app.route("/api/mutations")
    def list_mutations():
        st = state()
        if not st.session.is_authenticated:
            raise AuthorizationError("Silakan masuk terlebih dahulu.")
        mutations = _filtered(st.fleet.mutations)
        return jsonify([mutation_json(m, include_photo=False) for m in mutations])

    @app.route("/api/mutations/<mutation_id>/notes", methods=["POST"])
    def generate_notes(mutation_id: str):
        st = state()
        if not st.session.is_authenticated:
            raise AuthorizationError("Silakan masuk terlebih dahulu.")
        mutation = st.fleet.find_mutation(mutation_id)
        return jsonify({"notes": st.trips.generate_trip_notes(mutation)})

    def _filtered(mutations):
        try:
            return reports.filter_mutations(
                mutations,
                driver=request.args.get("driver"),
                start_date=request.args.get("since"),
                end_date=request.args.get("until"),
            )
        except ValueError:
            raise ValidationError("Tanggal harus berformat YYYY-MM-DD.") from None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @app.route("/api/users")
    def list_users():
        users = state().users.list_users()
        return jsonify([user_json(u) for u in users])

    @app.route("/api/users", methods=["POST"])
    def create_user():
        data = payload()
        user = state().users.create_user(
            data.get("username", ""), data.get("password", ""), data.get("role", "Operator")
        )
        return jsonify(user_json(user)), 201

    @app.route("/api/users/<user_id>", methods=["PUT"])
    def update_user(user_id: str):
        data = payload()
        user = state().users.update_user(
            user_id, data.get("username", ""), data.get("role", "")
        )
        return jsonify(user_json(user))

    @app.route("/api/users/<user_id>/password", methods=["PUT"])
    def change_password(user_id: str):
        user = state().users.change_password(user_id, payload().get("password", ""))
        return jsonify(user_json(user))

    @app.route("/api/users/<user_id>", methods=["DELETE"])
    def delete_user(user_id: str):
        confirmed = request.args.get("confirm", "").lower() in ("1", "true", "yes")
        deleted = state().users.delete_user(user_id, lambda question: confirmed)
        if not deleted:
            return jsonify({"deleted": False, "confirm": CONFIRM_DELETE})
        return jsonify({"deleted": True})

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @app.route("/export/csv")
    def export_csv():
        st = state()
        if not st.session.is_authenticated:
            raise AuthorizationError("Silakan masuk terlebih dahulu.")
        text = reports.export_csv(_filtered(st.fleet.mutations), st.fleet.vehicles)
        return Response(
            text.encode("utf-8"),
            mimetype="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={reports.CSV_FILENAME}"
            },
        )

    @app.route("/export/pdf")
    def export_pdf():
        st = state()
        if not st.session.is_authenticated:
            raise AuthorizationError("Silakan masuk terlebih dahulu.")
        pdf = reports.table_report_pdf(_filtered(st.fleet.mutations), st.fleet.vehicles)
        return Response(
            pdf,
            mimetype="application/pdf",
            headers={
                "Content-Disposition": f"attachment; filename={reports.TABLE_PDF_FILENAME}"
            },
        )

    def _report(mutation_id):
        """Completed trip and its vehicle, for the public report view."""
        st = state()
        mutation = st.fleet.find_mutation(mutation_id)
        vehicle = st.fleet.find_vehicle(mutation.vehicle_id) if mutation else None
        if mutation is None or vehicle is None:
            raise NotFoundError(REPORT_NOT_FOUND)
        return mutation, vehicle

    @app.route("/report/<mutation_id>")
    def report_view(mutation_id: str):
        """Read-only trip report reached through the QR code."""
        mutation, vehicle = _report(mutation_id)
        return jsonify(
            {
                "title": "Laporan Perjalanan Kendaraan",
                "reportId": mutation.id,
                "vehicle": vehicle_json(vehicle),
                "mutation": mutation_json(mutation),
                "startTime": format_local(mutation.start_time, settings.TIMEZONE, long=True),
                "endTime": format_local(mutation.end_time, settings.TIMEZONE, long=True),
                "notes": mutation.notes or reports.NO_NOTES,
                "verifyUrl": reports.report_url(mutation.id, request.host_url),
                "downloadUrl": reports.report_url(
                    mutation.id, request.host_url, download=True
                ),
                "qrUrl": f"/report/{mutation.id}/qr.png",
            }
        )

    @app.route("/report/<mutation_id>/pdf")
    def report_pdf(mutation_id: str):
        mutation, vehicle = _report(mutation_id)
        pdf = reports.single_report_pdf(mutation, vehicle, base_url=request.host_url)
        filename = reports.single_report_filename(mutation, vehicle)
        return Response(
            pdf,
            mimetype="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.route("/report/<mutation_id>/qr.png")
    def report_qr(mutation_id: str):
        mutation, _ = _report(mutation_id)
        png = reports.make_qr_png(
            reports.report_url(mutation.id, request.host_url, download=True)
        )
        return Response(png, mimetype="image/png")

    @app.route("/")
    def index():
        """Deep links from QR codes land here with ?reportId=..."""
        report_id = request.args.get("reportId")
        if report_id:
            if request.args.get("download", "").lower() == "true":
                return redirect(url_for("report_pdf", mutation_id=report_id))
            return redirect(url_for("report_view", mutation_id=report_id))
        return jsonify({"name": "armada", "configured": settings.is_configured(settings.SCRIPT_URL)})

    return app


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
