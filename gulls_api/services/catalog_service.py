"""
Condition / advisory catalog loading.

The catalog text is owned by the licensing team and supplied as a JSON
document::

    {
        "conditions": [{"id": 12, "condition": "...", "order_number": 1, "is_default": true}],
        "advisories": [{"id": 1, "advisory": "...", "order_number": 1}]
    }

Loading is idempotent: rows are matched on their fixed catalog id, new ids
are inserted and existing ones updated in place. The caller commits.
"""

from __future__ import annotations

import json
import logging

from gulls_api.core.exceptions import ValidationError
from gulls_api.models import db
from gulls_api.models.catalog import Advisory, Condition

logger = logging.getLogger(__name__)

_CATALOG_SECTIONS = (
    ("conditions", Condition, "condition"),
    ("advisories", Advisory, "advisory"),
)


def seed_catalog(data: dict) -> dict[str, int]:
    """Upsert catalog rows. Returns counts of inserted / updated rows."""
    counts = {"inserted": 0, "updated": 0}
    for section, model, text_field in _CATALOG_SECTIONS:
        for entry in data.get(section, []):
            if "id" not in entry or not entry.get(text_field):
                raise ValidationError(
                    f"Catalog {section} entries need an id and {text_field} text",
                    details={"entry": entry},
                )
            row = db.session.get(model, int(entry["id"]))
            if row is None:
                row = model(id=int(entry["id"]))
                db.session.add(row)
                counts["inserted"] += 1
            else:
                counts["updated"] += 1
            setattr(row, text_field, entry[text_field])
            row.order_number = entry.get("order_number")
            row.is_default = bool(entry.get("is_default", False))
    db.session.flush()
    logger.info("Catalog loaded: %s", counts)
    return counts


def seed_catalog_file(path: str) -> dict[str, int]:
    with open(path, encoding="utf-8") as fh:
        return seed_catalog(json.load(fh))
