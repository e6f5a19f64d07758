"""Code-set providers and the resolver that attaches options to fields."""

from .provider import CodeSetProvider, InMemoryCodeSetProvider, FileCodeSetProvider
from .resolver import CodeSetResolver, raise_if_cancelled
from .samples import (
    sample_code_sets,
    PROVINCES_CODE_SET_ID,
    YES_NO_CODE_SET_ID,
    PROJECT_STATUS_CODE_SET_ID,
    ORGANIZATION_TYPES_CODE_SET_ID,
)

__all__ = [
    "CodeSetProvider",
    "InMemoryCodeSetProvider",
    "FileCodeSetProvider",
    "CodeSetResolver",
    "raise_if_cancelled",
    "sample_code_sets",
    "PROVINCES_CODE_SET_ID",
    "YES_NO_CODE_SET_ID",
    "PROJECT_STATUS_CODE_SET_ID",
    "ORGANIZATION_TYPES_CODE_SET_ID",
]
