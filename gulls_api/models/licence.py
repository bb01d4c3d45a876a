"""
Gull Licensing API
Licence application domain models.

Models:
    - Contact: a person (licence holder or applicant) with an email address
    - Address: postal address used for sites and licence holders
    - LicenceApplication: root record for a licence; its id is the licence number
    - Note: free-text audit entry attached to an application

Applications, contacts and addresses are created by the submission flow,
which lives outside this service; here they are only read.
"""

from gulls_api.models import db
from gulls_api.models.soft_delete import SoftDeleteMixin, TimestampMixin


class Contact(TimestampMixin, SoftDeleteMixin, db.Model):
    """Licence holder or licence applicant."""

    __tablename__ = "contacts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    organisation = db.Column(db.String(200), nullable=True)
    email_address = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(50), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "organisation": self.organisation,
            "email_address": self.email_address,
            "phone_number": self.phone_number,
        }

    def __repr__(self):
        return f"<Contact {self.id}: {self.name}>"


class Address(TimestampMixin, SoftDeleteMixin, db.Model):
    """Postal address. ``address_line_2`` is the only optional line."""

    __tablename__ = "addresses"

    id = db.Column(db.Integer, primary_key=True)
    uprn = db.Column(db.String(20), nullable=True, comment="Unique property reference number")
    address_line_1 = db.Column(db.String(200), nullable=False)
    address_line_2 = db.Column(db.String(200), nullable=True)
    address_town = db.Column(db.String(100), nullable=False)
    address_county = db.Column(db.String(100), nullable=False)
    postcode = db.Column(db.String(20), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "uprn": self.uprn,
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "address_town": self.address_town,
            "address_county": self.address_county,
            "postcode": self.postcode,
        }

    def __repr__(self):
        return f"<Address {self.id}: {self.address_line_1}, {self.postcode}>"


class LicenceApplication(TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Root record for a gull control licence.

    The licence period is empty until the licence is issued.
    """

    __tablename__ = "licence_applications"

    id = db.Column(db.Integer, primary_key=True)
    licence_holder_id = db.Column(db.Integer, db.ForeignKey("contacts.id"), nullable=True, index=True)
    licence_applicant_id = db.Column(db.Integer, db.ForeignKey("contacts.id"), nullable=True, index=True)
    licence_holder_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=True)
    site_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=True)

    period_from = db.Column(db.Date, nullable=True, comment="Licence valid from")
    period_to = db.Column(db.Date, nullable=True, comment="Licence valid to")

    licence_holder = db.relationship("Contact", foreign_keys=[licence_holder_id])
    licence_applicant = db.relationship("Contact", foreign_keys=[licence_applicant_id])
    licence_holder_address = db.relationship("Address", foreign_keys=[licence_holder_address_id])
    site_address = db.relationship("Address", foreign_keys=[site_address_id])

    notes = db.relationship("Note", back_populates="application", order_by="Note.id")

    def to_dict(self):
        return {
            "id": self.id,
            "licence_holder_id": self.licence_holder_id,
            "licence_applicant_id": self.licence_applicant_id,
            "licence_holder_address_id": self.licence_holder_address_id,
            "site_address_id": self.site_address_id,
            "period_from": self.period_from.isoformat() if self.period_from else None,
            "period_to": self.period_to.isoformat() if self.period_to else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<LicenceApplication {self.id}>"


class Note(TimestampMixin, SoftDeleteMixin, db.Model):
    """Audit note against an application, e.g. the reason for an amendment."""

    __tablename__ = "notes"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer, db.ForeignKey("licence_applications.id"), nullable=False, index=True,
    )
    note = db.Column(db.Text, nullable=False, default="")
    created_by = db.Column(db.String(150), nullable=True)

    application = db.relationship("LicenceApplication", back_populates="notes")

    def to_dict(self):
        return {
            "id": self.id,
            "application_id": self.application_id,
            "note": self.note,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Note {self.id} on application {self.application_id}>"
