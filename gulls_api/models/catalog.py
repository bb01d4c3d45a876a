"""
Gull Licensing API
Licence condition and advisory catalog.

Models:
    - Condition: a condition printed on a licence
    - Advisory: an advisory note printed on a licence

Which email block a catalog item belongs to (general conditions, "what you
must do", reporting, advisory notes) is decided by the id sets held in
``CONDITION_GROUPS`` / ``ADVISORY_NOTE_IDS`` configuration, see
``gulls_api.services.notification_content``.
"""

from gulls_api.models import db
from gulls_api.models.soft_delete import SoftDeleteMixin, TimestampMixin


class Condition(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "conditions"

    # Ids are fixed catalog numbers, not generated
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    condition = db.Column(db.Text, nullable=False)
    order_number = db.Column(db.Integer, nullable=True)
    is_default = db.Column(db.Boolean, default=False,
                           comment="Printed on every licence unless removed")

    def to_dict(self):
        return {
            "id": self.id,
            "condition": self.condition,
            "order_number": self.order_number,
            "is_default": self.is_default,
        }

    def __repr__(self):
        return f"<Condition {self.id}>"


class Advisory(TimestampMixin, SoftDeleteMixin, db.Model):
    __tablename__ = "advisories"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    advisory = db.Column(db.Text, nullable=False)
    order_number = db.Column(db.Integer, nullable=True)
    is_default = db.Column(db.Boolean, default=False)

    def to_dict(self):
        return {
            "id": self.id,
            "advisory": self.advisory,
            "order_number": self.order_number,
            "is_default": self.is_default,
        }

    def __repr__(self):
        return f"<Advisory {self.id}>"
