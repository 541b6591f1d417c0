"""Record sources."""

from idfactor.sources.delimited import read_records

__all__ = ["read_records"]
