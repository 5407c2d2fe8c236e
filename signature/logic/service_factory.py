# signature/logic/service_factory.py
"""Wires the signing core from configuration."""
from __future__ import annotations

from typing import Optional

from core.common.app_context import SessionAuthContext
from core.config.config_service import ConfigService, config_service
from core.contracts.audit import IAuditLogger
from core.contracts.auth import IAuthContext
from core.logging.logic.logger import AuditLogger, configure_logging
from documents.adapters.filesystem_storage_adapter import FilesystemStorageAdapter
from documents.logic.page_geometry import PypdfGeometryProvider
from documents.logic.pdf_stamping_store import PdfStampingStore
from documents.repository.sqlite_document_repository import SQLiteDocumentRepository
from ..models.grid import GridLayout
from ..repository.artifact_repository import SQLiteArtifactRepository
from ..repository.placement_repository import SQLitePlacementRepository
from .batch_orchestrator import BatchOrchestrator
from .certificate_generator import ReportlabCertificateGenerator
from .coordinate_mapper import CoordinateMapper
from .encryption import KeyRing
from .placement_applier import PlacementApplier
from .position_resolver import PositionResolver
from .signature_service import SignatureService


def build_signature_service(
    config: Optional[ConfigService] = None,
    *,
    auth: Optional[IAuthContext] = None,
    audit: Optional[IAuditLogger] = None,
) -> SignatureService:
    cfg = config or config_service
    configure_logging(cfg.logging.level)
    auth = auth or SessionAuthContext()
    audit = audit or AuditLogger(cfg.database.logging)

    db_path = cfg.database.signing
    artifacts = SQLiteArtifactRepository(db_path, KeyRing(cfg.storage.key_file))
    placements = SQLitePlacementRepository(db_path)
    documents = SQLiteDocumentRepository(db_path)
    storage = FilesystemStorageAdapter(cfg.storage.documents_dir)
    geometry = PypdfGeometryProvider()

    store = PdfStampingStore(
        storage=storage, documents=documents, placements=placements, artifacts=artifacts
    )
    applier = PlacementApplier(
        artifacts=artifacts,
        documents=documents,
        placements=placements,
        store=store,
        auth=auth,
        geometry=geometry,
        resolver=PositionResolver(CoordinateMapper(cfg.placement.epsilon)),
        audit=audit,
    )
    service = SignatureService(
        artifacts=artifacts,
        documents=documents,
        placements=placements,
        storage=storage,
        geometry=geometry,
        applier=applier,
        orchestrator=BatchOrchestrator(
            applier, concurrency=cfg.placement.batch_concurrency, audit=audit
        ),
        certificates=ReportlabCertificateGenerator(issuer=cfg.general.app_name),
        auth=auth,
        audit=audit,
        layout=GridLayout.from_config(cfg.placement),
    )
    return service
