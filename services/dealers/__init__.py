"""Known dealer registry.

Components:
- Repo: Database operations (repo.py)
- Registry: In-memory alias cache with fuzzy lookup and enrichment (registry.py)
"""

from services.dealers.repo import IDealerRepo, DealerRepo
from services.dealers.registry import DealerRegistry

__all__ = [
    "IDealerRepo",
    "DealerRepo",
    "DealerRegistry",
]
