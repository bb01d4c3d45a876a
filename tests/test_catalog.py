"""
Gull Licensing API
Tests — condition / advisory catalog loading.
"""

import json

import pytest

from gulls_api.core.exceptions import ValidationError
from gulls_api.models import db
from gulls_api.models.catalog import Advisory, Condition
from gulls_api.services.catalog_service import seed_catalog

CATALOG = {
    "conditions": [
        {"id": 12, "condition": "Keep a copy of this licence on site", "order_number": 1, "is_default": True},
        {"id": 19, "condition": "Submit a return within 14 days", "order_number": 2},
    ],
    "advisories": [
        {"id": 1, "advisory": "Nesting birds are protected", "order_number": 1},
    ],
}


def test_seed_inserts_rows():
    counts = seed_catalog(CATALOG)

    assert counts == {"inserted": 3, "updated": 0}
    assert Condition.query.count() == 2
    assert db.session.get(Condition, 12).is_default is True
    assert db.session.get(Advisory, 1).advisory == "Nesting birds are protected"


def test_seed_is_idempotent():
    seed_catalog(CATALOG)
    changed = {"conditions": [{"id": 19, "condition": "Submit a return within 7 days", "order_number": 2}]}

    counts = seed_catalog(changed)

    assert counts == {"inserted": 0, "updated": 1}
    assert Condition.query.count() == 2
    assert db.session.get(Condition, 19).condition == "Submit a return within 7 days"


def test_entry_without_text_rejected():
    with pytest.raises(ValidationError):
        seed_catalog({"conditions": [{"id": 3}]})


def test_seed_catalog_command(app, tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["seed-catalog", str(path)])

    assert result.exit_code == 0
    assert "3 inserted" in result.output
