"""Enumerations shared across idfactor."""

from enum import StrEnum


class RecordVariant(StrEnum):
    """Layout variant of an input identity record.

    Selected by settings (``variant: compromised``) or the CLI ``--compromised`` flag.
    """

    AT_RISK = "at_risk"
    COMPROMISED = "compromised"
