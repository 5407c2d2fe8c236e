from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .signature_enums import ArtifactKind


@dataclass(frozen=True)
class ArtifactMetadata:
    """Holder details printed next to / instead of the signature image."""
    full_name: str
    organization: str = ""
    location: str = ""
    time_zone: str = "UTC"


@dataclass(frozen=True)
class SignatureArtifact:
    """
    Immutable signature artifact owned by one user.

    Placements reference it by ``artifact_id``; the image is never copied into them.
    """
    artifact_id: str
    owner_id: str
    name: str
    kind: ArtifactKind
    metadata: ArtifactMetadata
    image_png: Optional[bytes] = field(default=None, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_image(self) -> bool:
        return bool(self.image_png)

    @property
    def fingerprint(self) -> str:
        """SHA-256 over the image, or over the metadata for text-only artifacts."""
        if self.image_png:
            return hashlib.sha256(self.image_png).hexdigest()
        m = self.metadata
        raw = "|".join((m.full_name, m.organization, m.location, m.time_zone))
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()
