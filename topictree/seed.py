"""Out-of-band creation of the default topic catalogue.

Trees are never created by the mutation operations; this module creates the
standard medical topics in an empty (or partially seeded) store.
"""

import logging
from pathlib import Path

from topictree.store.database import get_store

logger = logging.getLogger(__name__)

DEFAULT_TOPICS = (
    "Cardiovascular",
    "Dermatology / ENT / Eyes",
    "Endocrinology / Metabolic",
    "Gastroenterology / Nutrition",
    "Infectious disease / Haematology / Immunology / Allergies / Genetics",
    "Musculoskeletal",
    "Paediatrics",
    "Pharmacology & Therapeutics",
    "Psychiatry / Neurology",
    "Renal / Urology",
    "Reproductive",
    "Respiratory",
)


def seed_topics(db_path: str | Path | None = None, topics=DEFAULT_TOPICS) -> list[str]:
    """Create the schema and any missing topic trees.

    Existing trees are left untouched, so seeding twice is harmless.

    Args:
        db_path: Store database. If None, uses the configured path
        topics: Tree names to create

    Returns:
        Names of the trees created by this call
    """
    created = []
    with get_store(db_path) as store:
        store.init_schema()
        existing = set(store.list_tree_names())
        with store.atomically():
            for name in topics:
                if name in existing:
                    continue
                store.create_tree(name)
                created.append(name)
    logger.info("Seeded %d topic(s)", len(created))
    return created
