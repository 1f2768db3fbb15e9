"""
distforge distributions - what gets packaged and how it is laid out.
"""

from .content import ContentSpec, CopyDetails, LazyFiles
from .model import (
    DEFAULT_SERVER_MAIN_CLASS,
    BinarySpec,
    Distribution,
    DistributionRegistry,
    RegistryPhase,
)

__all__ = [
    "ContentSpec",
    "CopyDetails",
    "LazyFiles",
    "DEFAULT_SERVER_MAIN_CLASS",
    "BinarySpec",
    "Distribution",
    "DistributionRegistry",
    "RegistryPhase",
]
