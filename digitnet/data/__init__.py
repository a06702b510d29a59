"""Dataset codecs and fixtures."""

from .fixtures import build_fixture
from .idx import IdxDataset, IdxHeader, read_header, read_records

__all__ = ["IdxDataset", "IdxHeader", "read_header", "read_records", "build_fixture"]
