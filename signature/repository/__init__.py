from .artifact_repository import SQLiteArtifactRepository
from .placement_repository import SQLitePlacementRepository

__all__ = ["SQLiteArtifactRepository", "SQLitePlacementRepository"]
