"""core/contracts/certificates.py
=============================

Certificate generator contract. Invoked after a successful placement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from signature.models.placement import Placement, Revision
    from signature.models.signature_artifact import SignatureArtifact


class ICertificateGenerator(ABC):
    """Produces a downloadable certificate document."""

    @abstractmethod
    def generate(
        self,
        placement: "Placement",
        artifact: "SignatureArtifact",
        revision: "Revision",
    ) -> bytes:
        """Return the certificate as PDF bytes."""
