# application.py
import logging
import os
from flask import Flask, current_app, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from shiftgrid.constants import (
    WORK_START,
    WORK_END,
    SLOT_STEP,
    MAX_EMPLOYEES,
    SHIFT_MODES,
    SHIFT_MODE_SINGLE,
    OVERLAP_POLICIES,
    OVERLAP_STRICT,
    ROLE_OPTIONS,
    DEFAULT_SINGLE_FORM,
    DEFAULT_DUAL_FORM,
    REMOTE_OWNER_ID,
)
from shiftgrid.remote import insert_schedule_row
from shiftgrid.session import RosterSession
from shiftgrid.sharing import (
    encode_roster_token,
    decode_roster_token,
    load_roster_file,
    save_roster_file,
)
from shiftgrid.utils import TimeSlots
from shiftgrid.validation import CAPACITY_EXCEEDED, DECODE_MALFORMED, NOT_FOUND

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",  # Local development
    "http://127.0.0.1:5173",  # Local development (alternative)
    "http://localhost:3000",  # Common frontend port
    "http://127.0.0.1:3000",  # Common frontend port (alternative)
]


def load_config_from_env():
    origins = os.getenv("CORS_ORIGINS")
    return {
        "SHIFT_MODE": os.getenv("SHIFT_MODE", SHIFT_MODE_SINGLE),
        "OVERLAP_POLICY": os.getenv("OVERLAP_POLICY", OVERLAP_STRICT),
        "ROSTER_FILE": os.getenv("ROSTER_FILE"),
        "SUPABASE_URL": os.getenv("SUPABASE_URL"),
        "SUPABASE_ANON_KEY": os.getenv("SUPABASE_ANON_KEY"),
        "REMOTE_OWNER_ID": os.getenv("REMOTE_OWNER_ID", REMOTE_OWNER_ID),
        "CORS_ORIGINS": origins.split(",") if origins else DEFAULT_CORS_ORIGINS,
    }


def get_roster():
    return current_app.extensions["roster_session"]


def error_status(error):
    if error["category"] == CAPACITY_EXCEEDED:
        return 409
    if error["category"] == NOT_FOUND:
        return 404
    return 400


def persist_roster(roster, warnings):
    """Write the roster to ROSTER_FILE; failures only add a warning."""
    path = current_app.config.get("ROSTER_FILE")
    if path and not save_roster_file(path, roster.employees):
        warnings.append("Roster could not be saved.")


def sync_remote(form, warnings):
    """Best-effort remote copy of a single-shift submission."""
    config = current_app.config
    if not config.get("SUPABASE_URL") or not config.get("SUPABASE_ANON_KEY"):
        return
    result = insert_schedule_row(
        form,
        base_url=config["SUPABASE_URL"],
        api_key=config["SUPABASE_ANON_KEY"],
        owner_id=config["REMOTE_OWNER_ID"],
    )
    if result is None:
        warnings.append("Remote sync failed.")


def read_form():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def create_app(config=None):
    """Build the Flask application.

    Args:
        config (dict): Overrides for the environment-based settings

    Returns:
        Flask: Configured application with its own roster session
    """
    application = Flask(__name__)

    # Security and performance configuration
    application.config.update(
        MAX_CONTENT_LENGTH=1 * 1024 * 1024,
        SESSION_COOKIE_SECURE=True,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
    )
    application.config.update(load_config_from_env())
    if config:
        application.config.update(config)

    mode = application.config["SHIFT_MODE"]
    policy = application.config["OVERLAP_POLICY"]
    if mode not in SHIFT_MODES:
        raise ValueError(f"Unknown SHIFT_MODE: {mode}")
    if policy not in OVERLAP_POLICIES:
        raise ValueError(f"Unknown OVERLAP_POLICY: {policy}")

    roster = RosterSession(mode=mode)
    roster_file = application.config.get("ROSTER_FILE")
    if roster_file:
        roster.replace_all(load_roster_file(roster_file, mode, roster.max_employees))
    application.extensions["roster_session"] = roster

    CORS(application, origins=application.config["CORS_ORIGINS"])
    register_handlers(application)
    register_routes(application)
    logger.info(f"Flask application created (mode: {mode}, overlap policy: {policy}).")
    return application


def register_handlers(application):
    # --- Security Headers Middleware ---
    @application.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        return response

    # --- Global Error Handlers ---
    @application.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Return JSON instead of HTML for HTTP errors."""
        return (
            jsonify(
                {
                    "success": False,
                    "error": e.name,
                    "message": e.description,
                    "code": e.code,
                }
            ),
            e.code,
        )

    @application.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle unexpected exceptions."""
        if isinstance(e, HTTPException):
            return e

        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return (
            jsonify(
                {
                    "success": False,
                    "error": "Internal Server Error",
                    "message": "An unexpected error occurred.",
                }
            ),
            500,
        )


def register_routes(application):
    @application.route("/")
    def health_check():
        return jsonify({"status": "ok", "service": "shift-grid-backend"}), 200

    @application.route("/api/config", methods=["GET"])
    def get_config():
        roster = get_roster()
        slots = TimeSlots(WORK_START, WORK_END, SLOT_STEP)
        return jsonify(
            {
                "mode": roster.mode,
                "overlapPolicy": current_app.config["OVERLAP_POLICY"],
                "workStart": WORK_START,
                "workEnd": WORK_END,
                "slotStep": SLOT_STEP,
                "slotLabels": slots.labels(),
                "roleOptions": ROLE_OPTIONS,
                "maxEmployees": MAX_EMPLOYEES,
                "defaultForm": DEFAULT_SINGLE_FORM if roster.is_single_shift else DEFAULT_DUAL_FORM,
            }
        )

    @application.route("/api/roster", methods=["GET"])
    def get_roster_grid():
        policy = request.args.get("policy", current_app.config["OVERLAP_POLICY"])
        if policy not in OVERLAP_POLICIES:
            return (
                jsonify({"success": False, "message": f"Unknown overlap policy: {policy}"}),
                400,
            )
        roster = get_roster()
        return jsonify(
            {"success": True, "employees": roster.employees, "grid": roster.grid(policy)}
        )

    @application.route("/api/employees", methods=["POST"])
    def create_employee():
        return handle_submission(None)

    @application.route("/api/employees/<employee_id>", methods=["PUT"])
    def update_employee(employee_id):
        return handle_submission(employee_id)

    @application.route("/api/employees/<employee_id>", methods=["DELETE"])
    def delete_employee(employee_id):
        roster = get_roster()
        employee = roster.delete(employee_id)
        if employee is None:
            return jsonify({"success": False, "message": "Employee not found."}), 404
        warnings = []
        persist_roster(roster, warnings)
        return jsonify({"success": True, "employee": employee, "warnings": warnings}), 200

    @application.route("/api/employees/<employee_id>/form", methods=["GET"])
    def get_employee_form(employee_id):
        values = get_roster().form_values(employee_id)
        if values is None:
            return jsonify({"success": False, "message": "Employee not found."}), 404
        return jsonify({"success": True, "form": values}), 200

    @application.route("/api/roster/share", methods=["GET"])
    def share_roster():
        return jsonify({"success": True, "token": encode_roster_token(get_roster().employees)})

    @application.route("/api/roster/import", methods=["POST"])
    def import_roster():
        data = read_form()
        if data is None:
            return (
                jsonify({"success": False, "message": "Request body empty/not JSON."}),
                400,
            )
        roster = get_roster()
        records = decode_roster_token(data.get("token"), roster.mode, roster.max_employees)
        if records is None:
            logger.warning("Shared roster token is malformed, keeping the current roster")
            return (
                jsonify(
                    {
                        "success": False,
                        "category": DECODE_MALFORMED,
                        "imported": 0,
                        "warnings": ["Shared roster could not be read; current roster kept."],
                    }
                ),
                400,
            )
        warnings = []
        roster.replace_all(records)
        persist_roster(roster, warnings)
        return jsonify({"success": True, "imported": len(records), "warnings": warnings}), 200


def handle_submission(editing_id):
    request_id = id(request)
    logger.info(f"[{request_id}] Received employee submission from {request.remote_addr}")
    form = read_form()
    if form is None:
        return (
            jsonify({"success": False, "message": "Request body empty/not JSON."}),
            400,
        )

    roster = get_roster()
    employee, error = roster.submit(form, editing_id=editing_id)
    if error:
        return jsonify({"success": False, "error": error}), error_status(error)

    warnings = []
    persist_roster(roster, warnings)
    if roster.is_single_shift:
        sync_remote(form, warnings)
    logger.info(f"[{request_id}] Stored employee {employee['id']}, warnings: {len(warnings)}")
    status = 200 if editing_id else 201
    return jsonify({"success": True, "employee": employee, "warnings": warnings}), status


application = create_app()


# --- Application Entry Point ---
if __name__ == "__main__":
    logger.info("Starting Flask development server...")
    application.run(debug=True, host="0.0.0.0", port=5000)
