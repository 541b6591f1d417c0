"""
idfactor: vertical partitioning of personal-identity records.

Splits each identity record into attribute fragments (name/dob, ssn,
address, ...), writes every fragment kind to its own store in an
independently shuffled order under fresh surrogate ids, and optionally
produces the mapping needed to reassemble the original records.
"""

__version__ = "0.1.0"
