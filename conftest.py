"""Shared pytest fixtures: generated PDFs, session principals, wired service."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Sequence, Tuple

import pytest
from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import A4, letter
from reportlab.pdfgen import canvas

from core.common.app_context import AppContext
from core.config.config_service import ConfigService
from core.logging.logic.logger import AuditLogger
from core.models.user import User

PageSpec = Tuple[float, float, int]  # width, height, rotation

LETTER: PageSpec = (letter[0], letter[1], 0)
A4_PORTRAIT: PageSpec = (A4[0], A4[1], 0)


def write_pdf(path: Path, pages: Sequence[PageSpec]) -> Path:
    """Write a PDF with one labelled page per (width, height, rotation); rotations go into /Rotate."""
    c = canvas.Canvas(str(path))
    for i, (w, h, _) in enumerate(pages, start=1):
        c.setPageSize((w, h))
        c.setFont("Helvetica", 14)
        c.drawString(72, h - 72, f"Page {i}")
        c.showPage()
    c.save()

    if any(rot for _, _, rot in pages):
        reader = PdfReader(str(path))
        writer = PdfWriter()
        for page, (_, _, rot) in zip(reader.pages, pages):
            if rot:
                page.rotate(rot)
            writer.add_page(page)
        with open(path, "wb") as fh:
            writer.write(fh)
    return path


@pytest.fixture
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def make(name: str = "contract.pdf", pages: Iterable[PageSpec] = (LETTER,)) -> Path:
        src = tmp_path / "uploads"
        src.mkdir(exist_ok=True)
        return write_pdf(src / name, list(pages))
    return make


@pytest.fixture
def alice() -> User:
    user = User(id="u-alice", username="alice", full_name="Alice Example", organization="ACME")
    AppContext.set_current_user(user, reason="test")
    yield user
    AppContext.clear_current_user(reason="test")


@pytest.fixture
def bob() -> User:
    return User(id="u-bob", username="bob", full_name="Bob Other")


@pytest.fixture
def test_config(tmp_path: Path) -> ConfigService:
    missing = tmp_path / "no-such.ini"
    return ConfigService(
        defaults_ini=missing,
        machine_ini=missing,
        user_ini=missing,
        environ={
            "SIGNDESK_DATABASE__SIGNING": str(tmp_path / "db" / "signdesk.db"),
            "SIGNDESK_DATABASE__LOGGING": str(tmp_path / "db" / "logs.db"),
            "SIGNDESK_STORAGE__DOCUMENTS_DIR": str(tmp_path / "store"),
            "SIGNDESK_STORAGE__KEY_FILE": str(tmp_path / "keys" / "artifacts.keyring"),
        },
    )


@pytest.fixture
def audit(test_config: ConfigService) -> AuditLogger:
    logger = AuditLogger(test_config.database.logging)
    yield logger
    logger.close()


@pytest.fixture
def service(test_config: ConfigService, audit: AuditLogger):
    from signature.logic.service_factory import build_signature_service

    return build_signature_service(test_config, audit=audit)
