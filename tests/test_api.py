"""
API tests for the shift grid backend.
Covers the HTTP endpoints, validation responses, persistence side effects
and error handling.
"""
import json
from unittest import mock

import pytest
from conftest import build_app
from fixtures.test_data import (
    SINGLE_EMPLOYEE,
    make_single_form,
    make_single_roster,
)
from shiftgrid.sharing import encode_roster_token


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


def put_json(client, url, payload):
    return client.put(url, data=json.dumps(payload), content_type="application/json")


class TestAPIEndpoints:
    """Test core API endpoint functionality."""

    def test_health_check_endpoint(self, client):
        """Test health check endpoint returns OK."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "service": "shift-grid-backend"}

    def test_config_endpoint(self, client):
        """Test the config endpoint exposes hours, slots and form defaults."""
        data = client.get("/api/config").get_json()
        assert data["mode"] == "single"
        assert data["workStart"] == 10
        assert data["workEnd"] == 23
        assert data["slotStep"] == 0.5
        assert len(data["slotLabels"]) == 26
        assert data["maxEmployees"] == 15
        assert data["defaultForm"]["shiftStart"] == "10:00"

    def test_create_and_render(self, client, sample_single_form):
        """Test a created employee shows up in the rendered grid."""
        response = post_json(client, "/api/employees", sample_single_form)
        assert response.status_code == 201
        employee = response.get_json()["employee"]
        assert employee["shiftStart"] == 10.0
        assert employee["breakEnd"] == 13.0

        data = client.get("/api/roster").get_json()
        assert data["success"] is True
        assert data["employees"] == [employee]
        row = data["grid"]["rows"][0]
        assert row["workHoursLabel"] == "7 小時"
        assert row["cells"][4]["status"] == "break"
        assert data["grid"]["legend"] == [{"role": "客服", "color": employee["color"]}]

    def test_edit_employee(self, client, sample_single_form):
        """Test an edit keeps the id and updates the totals."""
        employee = post_json(client, "/api/employees", sample_single_form).get_json()["employee"]
        form = dict(sample_single_form, shiftEnd="18:30")
        response = put_json(client, f"/api/employees/{employee['id']}", form)
        assert response.status_code == 200
        updated = response.get_json()["employee"]
        assert updated["id"] == employee["id"]

        data = client.get("/api/roster").get_json()
        assert data["grid"]["totalWorkHoursLabel"] == "7 小時 30 分"

    def test_edit_unknown_employee(self, client, sample_single_form):
        """Test editing a missing employee returns 404."""
        response = put_json(client, "/api/employees/missing", sample_single_form)
        assert response.status_code == 404
        assert response.get_json()["error"]["category"] == "not-found"

    def test_delete_employee(self, client, sample_single_form):
        """Test delete removes the employee and its legend entry."""
        employee = post_json(client, "/api/employees", sample_single_form).get_json()["employee"]
        response = client.delete(f"/api/employees/{employee['id']}")
        assert response.status_code == 200
        data = client.get("/api/roster").get_json()
        assert data["employees"] == []
        assert data["grid"]["legend"] == []

        assert client.delete(f"/api/employees/{employee['id']}").status_code == 404

    def test_form_prefill(self, client, sample_single_form):
        """Test the prefill endpoint returns the submitted form."""
        employee = post_json(client, "/api/employees", sample_single_form).get_json()["employee"]
        response = client.get(f"/api/employees/{employee['id']}/form")
        assert response.status_code == 200
        assert response.get_json()["form"] == sample_single_form
        assert client.get("/api/employees/missing/form").status_code == 404

    def test_policy_query(self, client):
        """Test the grid honours the policy query parameter."""
        post_json(client, "/api/employees", make_single_form(1, shiftStart="12:00", shiftEnd="13:00", breakStart="", breakEnd=""))
        strict = client.get("/api/roster?policy=strict").get_json()["grid"]["rows"][0]
        touch = client.get("/api/roster?policy=touch").get_json()["grid"]["rows"][0]
        # cells[3] is 11:30-12:00, cells[6] is 13:00-13:30
        assert strict["cells"][3]["status"] == "off"
        assert touch["cells"][3]["status"] == "work"
        assert strict["cells"][6]["status"] == "off"
        assert touch["cells"][6]["status"] == "off"
        assert client.get("/api/roster?policy=bogus").status_code == 400


class TestInputValidation:
    """Test validation errors as the form sees them."""

    def test_field_keyed_error(self, client, sample_single_form):
        """Test validation errors are keyed by form field."""
        form = dict(sample_single_form, breakStart="")
        response = post_json(client, "/api/employees", form)
        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["code"] == "INCOMPLETE_BREAK"
        assert error["category"] == "input-incomplete"
        assert set(error["fields"]) == {"breakStart", "breakEnd"}
        assert client.get("/api/roster").get_json()["employees"] == []

    def test_invalid_json_format(self, client):
        """Test malformed JSON is rejected."""
        response = client.post(
            "/api/employees", data='{"invalid": json format}', content_type="application/json"
        )
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_roster_cap(self, client):
        """Test the 16th create is refused with 409 while edits pass."""
        for i in range(15):
            assert post_json(client, "/api/employees", make_single_form(i)).status_code == 201
        response = post_json(client, "/api/employees", make_single_form(16))
        assert response.status_code == 409
        assert response.get_json()["error"]["code"] == "ROSTER_FULL"

        employees = client.get("/api/roster").get_json()["employees"]
        assert len(employees) == 15
        response = put_json(client, f"/api/employees/{employees[0]['id']}", make_single_form(99))
        assert response.status_code == 200

    def test_unknown_route_returns_json(self, client):
        """Test unknown routes answer with JSON."""
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["success"] is False


class TestDualShiftDeployment:
    """Test the dual-shift variant end to end."""

    def test_create_and_render(self, dual_client, sample_dual_form):
        """Test a dual-shift employee renders with shift roles."""
        response = post_json(dual_client, "/api/employees", sample_dual_form)
        assert response.status_code == 201
        employee = response.get_json()["employee"]
        assert employee["shift2"]["shiftEnd"] == 21.5

        grid = dual_client.get("/api/roster").get_json()["grid"]
        assert grid["mode"] == "dual"
        assert grid["rows"][0]["cells"][0]["role"] == "菜口"
        assert grid["totalWorkHoursLabel"] == "8 小時 30 分"

    def test_no_shift_selected(self, dual_client, sample_dual_form):
        """Test a dual-shift form without roles is rejected."""
        form = dict(sample_dual_form, shift1Role="", shift2Role="")
        response = post_json(dual_client, "/api/employees", form)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "NO_SHIFT_SELECTED"

    def test_no_remote_sync(self, sample_dual_form):
        """Test dual-shift submissions are not synced remotely."""
        client = build_app(
            SHIFT_MODE="dual", SUPABASE_URL="https://x.supabase.co", SUPABASE_ANON_KEY="k"
        ).test_client()
        with mock.patch("application.insert_schedule_row") as insert:
            assert post_json(client, "/api/employees", sample_dual_form).status_code == 201
        insert.assert_not_called()


class TestSharingAndPersistence:
    """Test share tokens, the roster file and remote sync through the API."""

    def test_share_and_import(self, client, sample_single_form):
        """Test a share token imports into another instance."""
        post_json(client, "/api/employees", sample_single_form)
        token = client.get("/api/roster/share").get_json()["token"]

        other = build_app().test_client()
        response = post_json(other, "/api/roster/import", {"token": token})
        assert response.status_code == 200
        assert response.get_json()["imported"] == 1
        assert other.get("/api/roster").get_json()["employees"] == client.get(
            "/api/roster"
        ).get_json()["employees"]

    def test_malformed_import_keeps_roster(self, client, sample_single_form):
        """Test a token with a bad record leaves the roster untouched."""
        post_json(client, "/api/employees", sample_single_form)
        bad = encode_roster_token([{"id": "x"}])
        response = post_json(client, "/api/roster/import", {"token": bad})
        data = response.get_json()
        assert response.status_code == 400
        assert data["success"] is False
        assert data["category"] == "decode-malformed"
        assert data["imported"] == 0
        assert data["warnings"]
        assert len(client.get("/api/roster").get_json()["employees"]) == 1

    def test_garbage_import_keeps_roster_file(self, tmp_path, sample_single_form):
        """Test an unreadable token does not overwrite the saved roster."""
        path = tmp_path / "roster.json"
        client = build_app(ROSTER_FILE=str(path)).test_client()
        post_json(client, "/api/employees", sample_single_form)

        response = post_json(client, "/api/roster/import", {"token": "garbage!!"})
        assert response.status_code == 400
        assert response.get_json()["category"] == "decode-malformed"
        assert len(client.get("/api/roster").get_json()["employees"]) == 1
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 1

    def test_oversized_import_keeps_roster(self, client, sample_single_form):
        """Test a token larger than the roster cap is refused."""
        post_json(client, "/api/employees", sample_single_form)
        token = encode_roster_token(make_single_roster(16))
        response = post_json(client, "/api/roster/import", {"token": token})
        assert response.status_code == 400
        assert response.get_json()["category"] == "decode-malformed"
        assert len(client.get("/api/roster").get_json()["employees"]) == 1

    def test_roster_file_round_trip(self, tmp_path, sample_single_form):
        """Test the roster file survives an application restart."""
        path = str(tmp_path / "roster.json")
        client = build_app(ROSTER_FILE=path).test_client()
        post_json(client, "/api/employees", sample_single_form)

        reloaded = build_app(ROSTER_FILE=path).test_client()
        employees = reloaded.get("/api/roster").get_json()["employees"]
        assert len(employees) == 1
        assert employees[0]["name"] == sample_single_form["name"]

    def test_save_failure_does_not_roll_back(self, tmp_path, sample_single_form):
        """Test a failed save is reported but the change is kept."""
        path = str(tmp_path / "missing-dir" / "roster.json")
        client = build_app(ROSTER_FILE=path).test_client()
        response = post_json(client, "/api/employees", sample_single_form)
        assert response.status_code == 201
        assert response.get_json()["warnings"] == ["Roster could not be saved."]
        assert len(client.get("/api/roster").get_json()["employees"]) == 1

    def test_remote_failure_is_a_warning(self, sample_single_form):
        """Test a failed remote sync only adds a warning."""
        client = build_app(SUPABASE_URL="https://x.supabase.co", SUPABASE_ANON_KEY="k").test_client()
        with mock.patch("application.insert_schedule_row", return_value=None) as insert:
            response = post_json(client, "/api/employees", sample_single_form)
        assert response.status_code == 201
        assert response.get_json()["warnings"] == ["Remote sync failed."]
        assert insert.call_args[0][0] == sample_single_form
        assert len(client.get("/api/roster").get_json()["employees"]) == 1

    def test_startup_with_malformed_file(self, tmp_path):
        """Test a roster file with a bad record loads as empty."""
        path = tmp_path / "roster.json"
        path.write_text(json.dumps(make_single_roster(2) + [{"name": "no id"}]), encoding="utf-8")
        client = build_app(ROSTER_FILE=str(path)).test_client()
        assert client.get("/api/roster").get_json()["employees"] == []

    def test_startup_restores_colors(self, tmp_path):
        """Test loading the roster file restores role colours."""
        path = tmp_path / "roster.json"
        path.write_text(json.dumps([SINGLE_EMPLOYEE]), encoding="utf-8")
        client = build_app(ROSTER_FILE=str(path)).test_client()
        legend = client.get("/api/roster").get_json()["grid"]["legend"]
        assert legend == [{"role": "客服", "color": SINGLE_EMPLOYEE["color"]}]


class TestConfiguration:
    """Test startup configuration checks."""

    def test_unknown_mode(self):
        """Test an unknown shift mode fails at startup."""
        with pytest.raises(ValueError):
            build_app(SHIFT_MODE="triple")

    def test_unknown_policy(self):
        """Test an unknown overlap policy fails at startup."""
        with pytest.raises(ValueError):
            build_app(OVERLAP_POLICY="fuzzy")
