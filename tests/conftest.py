"""
Shared test configuration and fixtures for the shift grid backend.
"""
import pytest
from application import create_app
from shiftgrid.colors import RoleColorRegistry
from shiftgrid.constants import SHIFT_MODE_SINGLE, SHIFT_MODE_DUAL
from shiftgrid.session import RosterSession


def build_app(**overrides):
    config = {
        "TESTING": True,
        "SHIFT_MODE": SHIFT_MODE_SINGLE,
        "ROSTER_FILE": None,
        "SUPABASE_URL": None,
        "SUPABASE_ANON_KEY": None,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app():
    """Create Flask application for testing."""
    return build_app()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def dual_client():
    """Test client for a dual-shift deployment."""
    return build_app(SHIFT_MODE=SHIFT_MODE_DUAL).test_client()


@pytest.fixture
def registry():
    return RoleColorRegistry()


@pytest.fixture
def single_roster():
    return RosterSession(mode=SHIFT_MODE_SINGLE)


@pytest.fixture
def dual_roster():
    return RosterSession(mode=SHIFT_MODE_DUAL)


@pytest.fixture
def sample_single_form():
    """Valid single-shift form: 10:00-18:00 with a 12:00-13:00 break."""
    return {
        "name": "王小明",
        "role": "客服",
        "shiftStart": "10:00",
        "shiftEnd": "18:00",
        "breakStart": "12:00",
        "breakEnd": "13:00",
    }


@pytest.fixture
def sample_dual_form():
    """Valid dual-shift form with both shifts filled in."""
    return {
        "name": "陳大文",
        "shift1Role": "菜口",
        "shift1Start": "10:00",
        "shift1End": "14:00",
        "shift2Role": "內場",
        "shift2Start": "17:00",
        "shift2End": "21:30",
    }
