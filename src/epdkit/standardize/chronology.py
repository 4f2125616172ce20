"""Chronology selector: choose which age-depth model an entity uses."""

import logging
from dataclasses import replace

from epdkit.core.record import EntityRecord

__all__ = ['GIESECKE_CHRONOLOGY_ID', 'select_default_chronology', 'giesecke_default_chronology']

logger = logging.getLogger(__name__)

# EPD id of the recalibrated chronologies of Giesecke et al. (2014)
GIESECKE_CHRONOLOGY_ID = 9999


def select_default_chronology(record: EntityRecord, preferred_id) -> EntityRecord:
    """Use ``preferred_id`` as default chronology when the entity has it.

    The record is returned unchanged when ``preferred_id`` is None or not
    one of its chronologies.
    """
    if preferred_id is None or preferred_id not in record.chronologies:
        return record
    if record.default_chronology == preferred_id:
        return record

    logger.debug("Entity %s: default chronology %s -> %s",
                 record.entity_id, record.default_chronology, preferred_id)
    return replace(record, default_chronology=preferred_id)


def giesecke_default_chronology(record: EntityRecord) -> EntityRecord:
    """Prefer the Giesecke et al. (2014) chronology when present."""
    return select_default_chronology(record, GIESECKE_CHRONOLOGY_ID)
