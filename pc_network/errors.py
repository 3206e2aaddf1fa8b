"""Exceptions raised by the provider network pipeline."""


class DataIntegrityError(ValueError):
    """Encounter data is malformed (missing columns, colliding ids, no usable rows)."""


class AlignmentError(ValueError):
    """Attribute rows cannot be matched one-to-one with graph nodes in node order."""
