"""
Gull Licensing API
Licence amendment domain models.

Models:
    - AmendmentActivity: activities permitted for one species by an amendment
    - AmendmentSpecies: per-amendment aggregate, one optional FK per species
    - Amendment: a recorded change to an issued licence
    - AmendCondition / AmendAdvisory: optional catalog items attached to an amendment

Amendments are append-only: created once, never updated, only soft-deleted.
"""

from gulls_api.models import db
from gulls_api.models.soft_delete import SoftDeleteMixin, TimestampMixin
from gulls_api.models.species import SPECIES

ACTIVITY_FIELDS = (
    "remove_nests",
    "quantity_nests_to_remove",
    "egg_destruction",
    "quantity_nests_where_eggs_destroyed",
    "chicks_to_rescue_centre",
    "quantity_chicks_to_rescue",
    "chicks_relocate_nearby",
    "quantity_chicks_to_relocate",
    "kill_chicks",
    "quantity_chicks_to_kill",
    "kill_adults",
    "quantity_adults_to_kill",
)


class AmendmentActivity(TimestampMixin, SoftDeleteMixin, db.Model):
    """Activities permitted for a single species. Identical shape for every species."""

    __tablename__ = "amendment_activities"

    id = db.Column(db.Integer, primary_key=True)
    remove_nests = db.Column(db.Boolean, default=False)
    quantity_nests_to_remove = db.Column(db.Integer, nullable=True)
    egg_destruction = db.Column(db.Boolean, default=False)
    quantity_nests_where_eggs_destroyed = db.Column(db.Integer, nullable=True)
    chicks_to_rescue_centre = db.Column(db.Boolean, default=False)
    quantity_chicks_to_rescue = db.Column(db.Integer, nullable=True)
    chicks_relocate_nearby = db.Column(db.Boolean, default=False)
    quantity_chicks_to_relocate = db.Column(db.Integer, nullable=True)
    kill_chicks = db.Column(db.Boolean, default=False)
    quantity_chicks_to_kill = db.Column(db.Integer, nullable=True)
    kill_adults = db.Column(db.Boolean, default=False)
    quantity_adults_to_kill = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        d = {"id": self.id}
        d.update({field: getattr(self, field) for field in ACTIVITY_FIELDS})
        return d

    def __repr__(self):
        return f"<AmendmentActivity {self.id}>"


class AmendmentSpecies(TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Species aggregate for an amendment.

    Any subset of the five species keys may be set, including none.
    """

    __tablename__ = "amendment_species"

    id = db.Column(db.Integer, primary_key=True)
    herring_gull_id = db.Column(db.Integer, db.ForeignKey("amendment_activities.id"), nullable=True)
    black_headed_gull_id = db.Column(db.Integer, db.ForeignKey("amendment_activities.id"), nullable=True)
    common_gull_id = db.Column(db.Integer, db.ForeignKey("amendment_activities.id"), nullable=True)
    great_black_backed_gull_id = db.Column(db.Integer, db.ForeignKey("amendment_activities.id"), nullable=True)
    lesser_black_backed_gull_id = db.Column(db.Integer, db.ForeignKey("amendment_activities.id"), nullable=True)

    herring_gull = db.relationship("AmendmentActivity", foreign_keys=[herring_gull_id])
    black_headed_gull = db.relationship("AmendmentActivity", foreign_keys=[black_headed_gull_id])
    common_gull = db.relationship("AmendmentActivity", foreign_keys=[common_gull_id])
    great_black_backed_gull = db.relationship("AmendmentActivity", foreign_keys=[great_black_backed_gull_id])
    lesser_black_backed_gull = db.relationship("AmendmentActivity", foreign_keys=[lesser_black_backed_gull_id])

    def to_dict(self, include_activities=False):
        d = {"id": self.id}
        for species in SPECIES:
            d[species.fk_column] = getattr(self, species.fk_column)
            if include_activities:
                activity = getattr(self, species.key)
                d[species.key] = activity.to_dict() if activity else None
        return d

    def __repr__(self):
        return f"<AmendmentSpecies {self.id}>"


class Amendment(TimestampMixin, SoftDeleteMixin, db.Model):
    """
    A recorded change to an issued licence's permitted activities or conditions.
    """

    __tablename__ = "amendments"

    id = db.Column(db.Integer, primary_key=True)
    licence_id = db.Column(
        db.Integer, db.ForeignKey("licence_applications.id"), nullable=False, index=True,
    )
    species_id = db.Column(db.Integer, db.ForeignKey("amendment_species.id"), nullable=False)
    amend_reason = db.Column(db.Text, nullable=True)
    amended_by = db.Column(db.String(150), nullable=True)
    assessment = db.Column(db.Text, nullable=True, comment="Statement of reasons for the amendment")

    species = db.relationship("AmendmentSpecies")
    application = db.relationship("LicenceApplication")
    amend_conditions = db.relationship("AmendCondition", back_populates="amendment",
                                       order_by="AmendCondition.id")
    amend_advisories = db.relationship("AmendAdvisory", back_populates="amendment",
                                       order_by="AmendAdvisory.id")

    def to_dict(self, include_children=False):
        d = {
            "id": self.id,
            "licence_id": self.licence_id,
            "species_id": self.species_id,
            "amend_reason": self.amend_reason,
            "amended_by": self.amended_by,
            "assessment": self.assessment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
        if include_children:
            d["species"] = self.species.to_dict(include_activities=True) if self.species else None
            d["condition_ids"] = [link.condition_id for link in self.amend_conditions]
            d["advisory_ids"] = [link.advisory_id for link in self.amend_advisories]
        return d

    def __repr__(self):
        return f"<Amendment {self.id} licence={self.licence_id}>"


class AmendCondition(TimestampMixin, SoftDeleteMixin, db.Model):
    """Optional condition attached to an amendment."""

    __tablename__ = "amend_conditions"

    id = db.Column(db.Integer, primary_key=True)
    amendment_id = db.Column(db.Integer, db.ForeignKey("amendments.id"), nullable=False, index=True)
    condition_id = db.Column(db.Integer, db.ForeignKey("conditions.id"), nullable=False)

    amendment = db.relationship("Amendment", back_populates="amend_conditions")
    condition = db.relationship("Condition")

    def __repr__(self):
        return f"<AmendCondition amendment={self.amendment_id} condition={self.condition_id}>"


class AmendAdvisory(TimestampMixin, SoftDeleteMixin, db.Model):
    """Optional advisory note attached to an amendment."""

    __tablename__ = "amend_advisories"

    id = db.Column(db.Integer, primary_key=True)
    amendment_id = db.Column(db.Integer, db.ForeignKey("amendments.id"), nullable=False, index=True)
    advisory_id = db.Column(db.Integer, db.ForeignKey("advisories.id"), nullable=False)

    amendment = db.relationship("Amendment", back_populates="amend_advisories")
    advisory = db.relationship("Advisory")

    def __repr__(self):
        return f"<AmendAdvisory amendment={self.amendment_id} advisory={self.advisory_id}>"
