"""
Dashboard behaviour through Streamlit's headless AppTest runner.
"""

import json
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import db
from db import KeyValueStore
from models import MEMBERS_KEY

APP_FILE = str(Path(__file__).parent.parent / "app.py")

TWIN = {"name": "Jane", "phone": "555-1", "type": "Gym", "amount": 50.0, "start": "2024-01-01", "end": "2030-01-31"}


@pytest.fixture
def app(tmp_path, monkeypatch):
    path = tmp_path / "app_gym.db"
    monkeypatch.setattr(db, "DB_FILE", path)
    # Two rows identical apart from id, as an export/re-import leaves them
    KeyValueStore(path).set(MEMBERS_KEY, json.dumps([{"id": "a1", **TWIN}, {"id": "b2", **TWIN}]))
    at = AppTest.from_file(APP_FILE, default_timeout=30)
    at.run()
    assert not at.exception
    return at


def test_identical_members_are_both_selectable(app):
    options = app.selectbox(key="member_select").options
    assert len(options) == 3
    assert len(set(options)) == 3


def test_delete_confirmation_does_not_carry_over_to_another_member(app):
    app.selectbox(key="member_select").select_index(1).run()
    app.checkbox(key="del_confirm_a1").check().run()
    assert app.button(key="delete_member").disabled is False

    app.selectbox(key="member_select").select_index(2).run()
    assert app.checkbox(key="del_confirm_b2").value is False
    assert app.button(key="delete_member").disabled is True


def test_delete_message_and_sidebar_count_after_rerun(app):
    app.selectbox(key="member_select").select_index(1).run()
    app.checkbox(key="del_confirm_a1").check().run()
    app.button(key="delete_member").click().run()

    assert not app.exception
    assert "Member deleted." in [s.value for s in app.success]
    assert app.sidebar.metric[0].value == "1"
    assert len(json.loads(KeyValueStore(db.DB_FILE).get(MEMBERS_KEY))) == 1


def test_tables_render_without_deprecated_arguments(app, caplog):
    with caplog.at_level("WARNING"):
        app.run()
    assert len(app.dataframe) == 2
    assert "use_container_width" not in caplog.text
