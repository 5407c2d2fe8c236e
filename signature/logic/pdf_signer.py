from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from io import BytesIO
from typing import Dict, List, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pypdf import PdfReader, PdfWriter
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..models.geometry import Rect
from ..models.signature_artifact import SignatureArtifact


@dataclass(frozen=True)
class Stamp:
    """
    One artifact drawn into one page-native rect (points, origin top-left).
    ``signed_at`` is printed in text blocks; keeping it per stamp makes
    re-composition of older placements reproduce the same text.
    """
    page_number: int
    rect: Rect
    artifact: SignatureArtifact
    signed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def format_timestamp(moment: datetime, time_zone: str) -> str:
    """'2026-10-18 14:03 Europe/Berlin' in the holder's zone (UTC if unknown)."""
    try:
        tz = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        tz, time_zone = ZoneInfo("UTC"), "UTC"
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return f"{moment.astimezone(tz):%Y-%m-%d %H:%M} {time_zone}"


class PdfSigner:
    VERIFIED_LINE = "Digitally verified"

    @staticmethod
    def _text_lines(stamp: Stamp) -> List[tuple[str, str, float]]:
        """(text, font, relative size) of the text block, top to bottom."""
        m = stamp.artifact.metadata
        lines = [(m.full_name, "Helvetica-Bold", 1.2)]
        if m.organization:
            lines.append((m.organization, "Helvetica", 1.0))
        if m.location:
            lines.append((m.location, "Helvetica", 0.9))
        lines.append((format_timestamp(stamp.signed_at, m.time_zone), "Helvetica", 0.9))
        lines.append((PdfSigner.VERIFIED_LINE, "Helvetica-Oblique", 0.8))
        return lines

    @staticmethod
    def _draw_text_block(c: canvas.Canvas, x: float, y_top: float, w: float, h: float, stamp: Stamp) -> None:
        lines = PdfSigner._text_lines(stamp)
        units = sum(rel for _, _, rel in lines) * 1.15
        base = h / units
        # shrink until the widest line fits
        for text, font, rel in lines:
            width = stringWidth(text, font, base * rel)
            if width > w > 0:
                base *= w / width

        y = y_top
        for text, font, rel in lines:
            size = max(1.0, base * rel)
            y -= size * 1.15
            if text == PdfSigner.VERIFIED_LINE:
                c.setFillColorRGB(0, 0.6, 0)
            else:
                c.setFillColorRGB(0, 0, 0)
            c.setFont(font, size)
            c.drawString(x, y, text)

    @staticmethod
    def _make_overlay(
        box_left: float,
        box_bottom: float,
        page_w: float,
        page_h: float,
        stamps: Sequence[Stamp],
        rotation: int = 0,
    ) -> bytes:
        """
        Overlay page of the same size as the target page carrying every stamp.
        Rects are flipped to the PDF's bottom-left origin here. On a page with
        /Rotate each stamp is turned back by the same angle around its centre
        so it reads upright in the viewer.
        """
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(box_left + page_w, box_bottom + page_h))

        for stamp in stamps:
            r = stamp.rect
            cx = box_left + r.x + r.width / 2
            cy = box_bottom + page_h - (r.y + r.height / 2)
            # upright extent; a quarter turn swaps the sides of the native rect
            w, h = (r.height, r.width) if rotation in (90, 270) else (r.width, r.height)

            c.saveState()
            c.translate(cx, cy)
            if rotation:
                c.rotate(rotation)
            if stamp.artifact.has_image:
                sig = Image.open(BytesIO(stamp.artifact.image_png)).convert("RGBA")
                c.drawImage(
                    ImageReader(sig), -w / 2, -h / 2, width=w, height=h,
                    mask="auto", preserveAspectRatio=True, anchor="c",
                )
            else:
                PdfSigner._draw_text_block(c, -w / 2, h / 2, w, h, stamp)
            c.restoreState()

        c.save()
        return buf.getvalue()

    @staticmethod
    def compose(*, input_path: str, stamps: Sequence[Stamp]) -> bytes:
        """
        Read *input_path*, merge an overlay onto every stamped page and return
        the encoded PDF. Overlays are drawn in unrotated page space and counter
        the page's /Rotate per stamp.
        """
        reader = PdfReader(input_path)
        writer = PdfWriter()

        by_page: Dict[int, List[Stamp]] = defaultdict(list)
        for stamp in stamps:
            by_page[stamp.page_number].append(stamp)

        for i, page in enumerate(reader.pages, start=1):
            if i in by_page:
                box = page.mediabox
                overlay_pdf = PdfSigner._make_overlay(
                    float(box.left), float(box.bottom), float(box.width), float(box.height),
                    by_page[i], int(page.rotation or 0) % 360,
                )
                overlay_reader = PdfReader(BytesIO(overlay_pdf))
                page.merge_page(overlay_reader.pages[0])
            writer.add_page(page)

        out = BytesIO()
        writer.write(out)
        return out.getvalue()
