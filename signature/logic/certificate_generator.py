# signature/logic/certificate_generator.py
"""
Signature certificate as a one-page PDF (reportlab).

The certificate binds a placement to the exact bytes of the revision it
produced via a SHA-256 digest of that revision file.
"""
from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import List, Tuple

from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.contracts.certificates import ICertificateGenerator
from ..exceptions.errors import TransientIO
from ..models.placement import Placement, Revision
from ..models.signature_artifact import SignatureArtifact
from .pdf_signer import format_timestamp

logger = logging.getLogger(__name__)

_PRIMARY = (0.23, 0.51, 0.96)
_SECONDARY = (0.39, 0.40, 0.95)
_ACCENT = (0.90, 0.95, 0.98)


def sha256_file(path: str | Path, chunk_size: int = 65536) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ReportlabCertificateGenerator(ICertificateGenerator):
    def __init__(self, *, issuer: str = "signdesk") -> None:
        self._issuer = issuer

    def generate(self, placement: Placement, artifact: SignatureArtifact, revision: Revision) -> bytes:
        try:
            revision_digest = sha256_file(revision.file_path)
        except OSError as exc:
            raise TransientIO(f"Cannot read revision {revision.number}: {exc}") from exc

        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=letter)
        width, height = letter
        c.setTitle(f"Signature certificate {placement.placement_id}")

        # header band
        c.setFillColorRGB(*_PRIMARY)
        c.rect(0, height - 120, width, 120, stroke=0, fill=1)
        c.setFillColorRGB(1, 1, 1)
        c.setFont("Helvetica-Bold", 20)
        c.drawString(50, height - 50, "DIGITAL SIGNATURE CERTIFICATE")
        c.setFont("Helvetica", 11)
        c.drawString(50, height - 72, f"Certificate ID: {placement.placement_id}")
        c.drawString(50, height - 90, f"Issued by {self._issuer}")

        y = height - 160
        y = self._section(c, y, "SIGNATURE DETAILS", self._signature_rows(artifact, placement))
        y = self._section(c, y, "PLACEMENT", [
            ("Document:", placement.document_id),
            ("Page:", str(placement.page_number)),
            ("Revision:", f"r{revision.number} ({Path(revision.file_path).name})"),
            ("Position (pt):", "x={x:.1f} y={y:.1f} w={width:.1f} h={height:.1f}".format(**placement.rect.as_dict())),
        ])

        if artifact.has_image:
            c.setFillColorRGB(*_PRIMARY)
            c.setFont("Helvetica-Bold", 14)
            c.drawString(50, y, "SIGNATURE IMAGE")
            img = Image.open(BytesIO(artifact.image_png)).convert("RGBA")
            scale = min(200.0 / img.width, 100.0 / img.height)
            w, h = img.width * scale, img.height * scale
            c.drawImage(ImageReader(img), 60, y - 20 - h, width=w, height=h, mask="auto")
            y -= h + 50

        self._section(c, y, "VERIFICATION", [
            ("Revision SHA-256:", revision_digest[:32]),
            ("", revision_digest[32:]),
            ("Artifact SHA-256:", artifact.fingerprint[:32]),
            ("", artifact.fingerprint[32:]),
        ])

        c.setFillColorRGB(0.4, 0.4, 0.4)
        c.setFont("Helvetica", 8)
        c.drawString(50, 40, f"Generated {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC")
        c.showPage()
        c.save()
        logger.debug("Certificate generated for placement %s", placement.placement_id)
        return buf.getvalue()

    @staticmethod
    def _signature_rows(artifact: SignatureArtifact, placement: Placement) -> List[Tuple[str, str]]:
        m = artifact.metadata
        return [
            ("Signature name:", artifact.name),
            ("Full name:", m.full_name),
            ("Organization:", m.organization or "-"),
            ("Location:", m.location or "-"),
            ("Time zone:", m.time_zone),
            ("Signed:", format_timestamp(placement.created_at, m.time_zone)),
        ]

    @staticmethod
    def _section(c: canvas.Canvas, y: float, title: str, rows: List[Tuple[str, str]]) -> float:
        c.setFillColorRGB(*_PRIMARY)
        c.setFont("Helvetica-Bold", 14)
        c.drawString(50, y, title)
        y -= 28
        for i, (label, value) in enumerate(rows):
            if i % 2 == 0:
                c.setFillColorRGB(*_ACCENT)
                c.rect(50, y - 6, 512, 22, stroke=0, fill=1)
            c.setFillColorRGB(*_SECONDARY)
            c.setFont("Helvetica-Bold", 10)
            c.drawString(60, y, label)
            c.setFont("Courier" if "SHA" in label or not label else "Helvetica", 10)
            c.drawString(190, y, value)
            y -= 24
        return y - 16
