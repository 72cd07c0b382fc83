"""Map website color signals onto Catppuccin palettes."""

from .models import (
    CATEGORIES,
    IconColorSignal,
    MappingEntry,
    MappingReport,
    MappingResult,
    MappingSession,
    SelectorSignal,
    VariableSignal,
)
from .orchestrator import Orchestrator

__version__ = "0.1.0"

__all__ = [
    "CATEGORIES",
    "IconColorSignal",
    "MappingEntry",
    "MappingReport",
    "MappingResult",
    "MappingSession",
    "Orchestrator",
    "SelectorSignal",
    "VariableSignal",
    "__version__",
]
