"""
Gull Licensing API
Species descriptor table.

Every licence covers up to five gull species. Amendments and returns both
store a species aggregate row with one optional foreign key per species,
named ``<key>_id``, and a relationship named ``<key>`` that loads the
species' activity row.

Code that needs to do something "for each species" iterates ``SPECIES``
instead of branching on each species by hand.
"""

from __future__ import annotations

from dataclasses import dataclass

from gulls_api.core.exceptions import ValidationError
from gulls_api.models import db


@dataclass(frozen=True)
class SpeciesDescriptor:
    """Static description of one licensable gull species."""

    key: str
    display_name: str
    conservation_status: str

    @property
    def fk_column(self) -> str:
        """Name of the aggregate's foreign key column for this species."""
        return f"{self.key}_id"


# Ordered: emails list species in this order.
SPECIES: tuple[SpeciesDescriptor, ...] = (
    SpeciesDescriptor(
        key="herring_gull",
        display_name="Herring gull",
        conservation_status="Herring gull: Red listed as a Bird of Conservation Concern in the UK.",
    ),
    SpeciesDescriptor(
        key="black_headed_gull",
        display_name="Black-headed gull",
        conservation_status="Black-headed gull: Amber listed as a Bird of Conservation Concern in the UK.",
    ),
    SpeciesDescriptor(
        key="common_gull",
        display_name="Common gull",
        conservation_status="Common gull: Amber listed as a Bird of Conservation Concern in the UK.",
    ),
    SpeciesDescriptor(
        key="great_black_backed_gull",
        display_name="Great black-backed gull",
        conservation_status="Great black-backed gull: Amber listed as a Bird of Conservation Concern in the UK.",
    ),
    SpeciesDescriptor(
        key="lesser_black_backed_gull",
        display_name="Lesser black-backed gull",
        conservation_status="Lesser black-backed gull: Amber listed as a Bird of Conservation Concern in the UK.",
    ),
)

SPECIES_KEYS = frozenset(s.key for s in SPECIES)


def species_present(aggregate) -> list[tuple[SpeciesDescriptor, object]]:
    """Return ``(descriptor, activity_row)`` for every species set on an aggregate.

    ``aggregate`` is an AmendmentSpecies or ReturnSpecies instance; ``None``
    yields an empty list.
    """
    if aggregate is None:
        return []
    present = []
    for species in SPECIES:
        if getattr(aggregate, species.fk_column) is None:
            continue
        present.append((species, getattr(aggregate, species.key)))
    return present


def check_species_keys(species_activities: dict, record: str) -> None:
    """Raise ValidationError for keys that are not in the species table."""
    unknown = set(species_activities) - SPECIES_KEYS
    if unknown:
        raise ValidationError(
            f"Unknown species in {record}",
            details={"species": sorted(unknown)},
        )


def insert_species_aggregate(species_activities: dict, *, activity_model, aggregate_model,
                             build_activity=None):
    """Insert one activity row per species with a payload, then the aggregate.

    Species are inserted in table order; species with no payload get no row
    and a ``None`` key on the aggregate. ``build_activity(payload)`` turns a
    payload into an unsaved activity row (default: ``activity_model(**payload)``).
    Runs inside the caller's transaction; nothing is committed here.
    """
    build = build_activity or (lambda payload: activity_model(**payload))
    species_ids = {}
    for species in SPECIES:
        payload = species_activities.get(species.key)
        if not payload:
            continue
        activity = build(payload)
        db.session.add(activity)
        db.session.flush()
        species_ids[species.fk_column] = activity.id

    aggregate = aggregate_model(**species_ids)
    db.session.add(aggregate)
    db.session.flush()
    return aggregate
