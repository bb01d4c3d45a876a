"""
Gull Licensing API
Licence return domain models.

Models:
    - ReturnActivity: activities actually carried out for one species
    - ReturnSpecies: per-return aggregate, one optional FK per species
    - Return: a post-issuance report of control activities

Returns are created once and never updated.
"""

from gulls_api.models import db
from gulls_api.models.soft_delete import SoftDeleteMixin, TimestampMixin
from gulls_api.models.species import SPECIES

RETURN_ACTIVITY_FIELDS = (
    "remove_nests",
    "quantity_nests_removed",
    "quantity_eggs_removed",
    "date_nests_eggs_removed",
    "egg_destruction",
    "quantity_eggs_destroyed",
    "quantity_nests_affected",
    "date_nests_eggs_destroyed",
    "chicks_to_rescue_centre",
    "quantity_chicks_to_rescue",
    "rescue_centre",
    "date_chicks_to_rescue",
    "chicks_relocated_nearby",
    "quantity_chicks_relocated",
    "date_chicks_relocated",
    "kill_chicks",
    "quantity_chicks_killed",
    "date_chicks_killed",
    "kill_adults",
    "quantity_adults_killed",
    "date_adults_killed",
)

RETURN_DATE_FIELDS = tuple(f for f in RETURN_ACTIVITY_FIELDS if f.startswith("date_"))


class ReturnActivity(TimestampMixin, SoftDeleteMixin, db.Model):
    """Activities carried out for a single species, with quantities and dates."""

    __tablename__ = "return_activities"

    id = db.Column(db.Integer, primary_key=True)

    remove_nests = db.Column(db.Boolean, default=False)
    quantity_nests_removed = db.Column(db.Integer, nullable=True)
    quantity_eggs_removed = db.Column(db.Integer, nullable=True)
    date_nests_eggs_removed = db.Column(db.Date, nullable=True)

    egg_destruction = db.Column(db.Boolean, default=False)
    quantity_eggs_destroyed = db.Column(db.Integer, nullable=True)
    quantity_nests_affected = db.Column(db.Integer, nullable=True)
    date_nests_eggs_destroyed = db.Column(db.Date, nullable=True)

    chicks_to_rescue_centre = db.Column(db.Boolean, default=False)
    quantity_chicks_to_rescue = db.Column(db.Integer, nullable=True)
    rescue_centre = db.Column(db.String(200), nullable=True)
    date_chicks_to_rescue = db.Column(db.Date, nullable=True)

    chicks_relocated_nearby = db.Column(db.Boolean, default=False)
    quantity_chicks_relocated = db.Column(db.Integer, nullable=True)
    date_chicks_relocated = db.Column(db.Date, nullable=True)

    kill_chicks = db.Column(db.Boolean, default=False)
    quantity_chicks_killed = db.Column(db.Integer, nullable=True)
    date_chicks_killed = db.Column(db.Date, nullable=True)

    kill_adults = db.Column(db.Boolean, default=False)
    quantity_adults_killed = db.Column(db.Integer, nullable=True)
    date_adults_killed = db.Column(db.Date, nullable=True)

    def to_dict(self):
        d = {"id": self.id}
        for field in RETURN_ACTIVITY_FIELDS:
            value = getattr(self, field)
            d[field] = value.isoformat() if field in RETURN_DATE_FIELDS and value else value
        return d

    def __repr__(self):
        return f"<ReturnActivity {self.id}>"


class ReturnSpecies(TimestampMixin, SoftDeleteMixin, db.Model):
    """Species aggregate for a return. Any subset of species keys may be set."""

    __tablename__ = "return_species"

    id = db.Column(db.Integer, primary_key=True)
    herring_gull_id = db.Column(db.Integer, db.ForeignKey("return_activities.id"), nullable=True)
    black_headed_gull_id = db.Column(db.Integer, db.ForeignKey("return_activities.id"), nullable=True)
    common_gull_id = db.Column(db.Integer, db.ForeignKey("return_activities.id"), nullable=True)
    great_black_backed_gull_id = db.Column(db.Integer, db.ForeignKey("return_activities.id"), nullable=True)
    lesser_black_backed_gull_id = db.Column(db.Integer, db.ForeignKey("return_activities.id"), nullable=True)

    herring_gull = db.relationship("ReturnActivity", foreign_keys=[herring_gull_id])
    black_headed_gull = db.relationship("ReturnActivity", foreign_keys=[black_headed_gull_id])
    common_gull = db.relationship("ReturnActivity", foreign_keys=[common_gull_id])
    great_black_backed_gull = db.relationship("ReturnActivity", foreign_keys=[great_black_backed_gull_id])
    lesser_black_backed_gull = db.relationship("ReturnActivity", foreign_keys=[lesser_black_backed_gull_id])

    def to_dict(self, include_activities=False):
        d = {"id": self.id}
        for species in SPECIES:
            d[species.fk_column] = getattr(self, species.fk_column)
            if include_activities:
                activity = getattr(self, species.key)
                d[species.key] = activity.to_dict() if activity else None
        return d

    def __repr__(self):
        return f"<ReturnSpecies {self.id}>"


class Return(TimestampMixin, SoftDeleteMixin, db.Model):
    """Post-issuance activity return. ``created_at`` is the return date."""

    __tablename__ = "returns"

    id = db.Column(db.Integer, primary_key=True)
    licence_id = db.Column(
        db.Integer, db.ForeignKey("licence_applications.id"), nullable=False, index=True,
    )
    species_id = db.Column(db.Integer, db.ForeignKey("return_species.id"), nullable=False)
    confirmed_return = db.Column(db.Boolean, default=False)

    species = db.relationship("ReturnSpecies")
    application = db.relationship("LicenceApplication")

    def to_dict(self, include_children=False):
        d = {
            "id": self.id,
            "licence_id": self.licence_id,
            "species_id": self.species_id,
            "confirmed_return": self.confirmed_return,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_children:
            d["species"] = self.species.to_dict(include_activities=True) if self.species else None
        return d

    def __repr__(self):
        return f"<Return {self.id} licence={self.licence_id}>"
