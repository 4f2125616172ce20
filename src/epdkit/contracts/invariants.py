"""Formal pipeline invariants.

This file documents what each stage MUST produce. Use it as a reviewer
anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "record": [
        "counts is a DataFrame: rows=samples, columns=taxon ids",
        "taxa metadata has one entry per column, same order",
        "depths, every chronology and quality have one value per sample",
        "default_chronology is None (depth axis) or a key of chronologies",
    ],

    "filter": [
        "At least one taxon survives filter_by_taxon_groups",
        "remove_restricted / remove_without_ages keep input order and never raise",
    ],

    "chronology": [
        "default_chronology is the preferred id when the entity has it, else unchanged",
    ],

    "unification": [
        "Every output record shares one ordered taxon axis",
        "Taxa absent from an entity are 0, not NaN, on rows that hold data",
        "Sample order is unchanged",
    ],

    "normalization": [
        "counts_unit is Percentages",
        "Each row sums to 100 or is entirely NaN",
    ],

    "resampling": [
        "Sample axis equals the target ages or intervals",
        "Targets without data are NaN rows, never zero, never extrapolated",
        "quality is cleared",
    ],

    "quality": [
        "One quality value per sample, within [0, 1] or NaN",
        "NaN count rows have NaN quality",
    ],

    "table": [
        "Columns: entity_id, longitude, latitude, count, age_label, taxon",
        "NaN counts are kept as rows",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "filter": "REQUIRED",
    "chronology": "REQUIRED",
    "unification": "REQUIRED",
    "normalization": "OPTIONAL",   # config.normalizer.percentages
    "resampling": "OPTIONAL",      # config.resampling.method != "none"
    "quality": "OPTIONAL",         # config.quality.enabled
    "table": "OPTIONAL",
}
