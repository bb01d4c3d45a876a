"""initial_licensing_schema

Licence applications, catalog, amendments, returns, email log and
scheduled job tables.

Revision ID: 0001a7c3e9b2
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "0001a7c3e9b2"
down_revision = None
branch_labels = None
depends_on = None

SPECIES_KEYS = (
    "herring_gull",
    "black_headed_gull",
    "common_gull",
    "great_black_backed_gull",
    "lesser_black_backed_gull",
)


def _audit_columns():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _deleted_at_index(table):
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])


def _species_table(name, activity_table):
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), nullable=False),
        *[sa.Column(f"{key}_id", sa.Integer(), nullable=True) for key in SPECIES_KEYS],
        *_audit_columns(),
        *[sa.ForeignKeyConstraint([f"{key}_id"], [f"{activity_table}.id"]) for key in SPECIES_KEYS],
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index(name)


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())
    if "licence_applications" in existing_tables:
        return

    # ── Licence applications ──────────────────────────────────────────────
    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("organisation", sa.String(length=200), nullable=True),
        sa.Column("email_address", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("contacts")

    op.create_table(
        "addresses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uprn", sa.String(length=20), nullable=True),
        sa.Column("address_line_1", sa.String(length=200), nullable=False),
        sa.Column("address_line_2", sa.String(length=200), nullable=True),
        sa.Column("address_town", sa.String(length=100), nullable=False),
        sa.Column("address_county", sa.String(length=100), nullable=False),
        sa.Column("postcode", sa.String(length=20), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("addresses")

    op.create_table(
        "licence_applications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("licence_holder_id", sa.Integer(), nullable=True),
        sa.Column("licence_applicant_id", sa.Integer(), nullable=True),
        sa.Column("licence_holder_address_id", sa.Integer(), nullable=True),
        sa.Column("site_address_id", sa.Integer(), nullable=True),
        sa.Column("period_from", sa.Date(), nullable=True),
        sa.Column("period_to", sa.Date(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["licence_holder_id"], ["contacts.id"]),
        sa.ForeignKeyConstraint(["licence_applicant_id"], ["contacts.id"]),
        sa.ForeignKeyConstraint(["licence_holder_address_id"], ["addresses.id"]),
        sa.ForeignKeyConstraint(["site_address_id"], ["addresses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_licence_applications_licence_holder_id", "licence_applications", ["licence_holder_id"])
    op.create_index("ix_licence_applications_licence_applicant_id", "licence_applications",
                    ["licence_applicant_id"])
    _deleted_at_index("licence_applications")

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(length=150), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["application_id"], ["licence_applications.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notes_application_id", "notes", ["application_id"])
    _deleted_at_index("notes")

    # ── Catalog ───────────────────────────────────────────────────────────
    op.create_table(
        "conditions",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("condition", sa.Text(), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("conditions")

    op.create_table(
        "advisories",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("advisory", sa.Text(), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("advisories")

    # ── Amendments ────────────────────────────────────────────────────────
    op.create_table(
        "amendment_activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("remove_nests", sa.Boolean(), nullable=True),
        sa.Column("quantity_nests_to_remove", sa.Integer(), nullable=True),
        sa.Column("egg_destruction", sa.Boolean(), nullable=True),
        sa.Column("quantity_nests_where_eggs_destroyed", sa.Integer(), nullable=True),
        sa.Column("chicks_to_rescue_centre", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_to_rescue", sa.Integer(), nullable=True),
        sa.Column("chicks_relocate_nearby", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_to_relocate", sa.Integer(), nullable=True),
        sa.Column("kill_chicks", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_to_kill", sa.Integer(), nullable=True),
        sa.Column("kill_adults", sa.Boolean(), nullable=True),
        sa.Column("quantity_adults_to_kill", sa.Integer(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("amendment_activities")
    _species_table("amendment_species", "amendment_activities")

    op.create_table(
        "amendments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("licence_id", sa.Integer(), nullable=False),
        sa.Column("species_id", sa.Integer(), nullable=False),
        sa.Column("amend_reason", sa.Text(), nullable=True),
        sa.Column("amended_by", sa.String(length=150), nullable=True),
        sa.Column("assessment", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["licence_id"], ["licence_applications.id"]),
        sa.ForeignKeyConstraint(["species_id"], ["amendment_species.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_amendments_licence_id", "amendments", ["licence_id"])
    _deleted_at_index("amendments")

    for table, column, target in (
        ("amend_conditions", "condition_id", "conditions"),
        ("amend_advisories", "advisory_id", "advisories"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("amendment_id", sa.Integer(), nullable=False),
            sa.Column(column, sa.Integer(), nullable=False),
            *_audit_columns(),
            sa.ForeignKeyConstraint(["amendment_id"], ["amendments.id"]),
            sa.ForeignKeyConstraint([column], [f"{target}.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_amendment_id", table, ["amendment_id"])
        _deleted_at_index(table)

    # ── Returns ───────────────────────────────────────────────────────────
    op.create_table(
        "return_activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("remove_nests", sa.Boolean(), nullable=True),
        sa.Column("quantity_nests_removed", sa.Integer(), nullable=True),
        sa.Column("quantity_eggs_removed", sa.Integer(), nullable=True),
        sa.Column("date_nests_eggs_removed", sa.Date(), nullable=True),
        sa.Column("egg_destruction", sa.Boolean(), nullable=True),
        sa.Column("quantity_eggs_destroyed", sa.Integer(), nullable=True),
        sa.Column("quantity_nests_affected", sa.Integer(), nullable=True),
        sa.Column("date_nests_eggs_destroyed", sa.Date(), nullable=True),
        sa.Column("chicks_to_rescue_centre", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_to_rescue", sa.Integer(), nullable=True),
        sa.Column("rescue_centre", sa.String(length=200), nullable=True),
        sa.Column("date_chicks_to_rescue", sa.Date(), nullable=True),
        sa.Column("chicks_relocated_nearby", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_relocated", sa.Integer(), nullable=True),
        sa.Column("date_chicks_relocated", sa.Date(), nullable=True),
        sa.Column("kill_chicks", sa.Boolean(), nullable=True),
        sa.Column("quantity_chicks_killed", sa.Integer(), nullable=True),
        sa.Column("date_chicks_killed", sa.Date(), nullable=True),
        sa.Column("kill_adults", sa.Boolean(), nullable=True),
        sa.Column("quantity_adults_killed", sa.Integer(), nullable=True),
        sa.Column("date_adults_killed", sa.Date(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _deleted_at_index("return_activities")
    _species_table("return_species", "return_activities")

    op.create_table(
        "returns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("licence_id", sa.Integer(), nullable=False),
        sa.Column("species_id", sa.Integer(), nullable=False),
        sa.Column("confirmed_return", sa.Boolean(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["licence_id"], ["licence_applications.id"]),
        sa.ForeignKeyConstraint(["species_id"], ["return_species.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_returns_licence_id", "returns", ["licence_id"])
    _deleted_at_index("returns")

    # ── Email log & scheduler ─────────────────────────────────────────────
    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipient_email", sa.String(length=255), nullable=False),
        sa.Column("template_id", sa.String(length=64), nullable=False),
        sa.Column("personalisation", sa.JSON(), nullable=True),
        sa.Column("category", sa.String(length=30), nullable=True),
        sa.Column("licence_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("provider_id", sa.String(length=64), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_logs_recipient_email", "email_logs", ["recipient_email"])
    op.create_index("ix_email_logs_licence_id", "email_logs", ["licence_id"])

    op.create_table(
        "scheduled_jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("schedule_config", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=True),
        sa.Column("last_run_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_run_status", sa.String(length=20), nullable=True),
        sa.Column("last_run_duration_ms", sa.Integer(), nullable=True),
        sa.Column("last_run_result", sa.JSON(), nullable=True),
        sa.Column("run_count", sa.Integer(), nullable=True),
        sa.Column("error_count", sa.Integer(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_name"),
    )


def downgrade():
    for table in (
        "scheduled_jobs",
        "email_logs",
        "returns",
        "return_species",
        "return_activities",
        "amend_advisories",
        "amend_conditions",
        "amendments",
        "amendment_species",
        "amendment_activities",
        "advisories",
        "conditions",
        "notes",
        "licence_applications",
        "addresses",
        "contacts",
    ):
        op.drop_table(table)
