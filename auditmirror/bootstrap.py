"""One-call setup of logging, pools and the audit service from settings.

Example:
    service = bootstrap()
    await service.start()
    try:
        service.log("orders", order.id, AuditAction.UPDATE, "svc-a", order)
    finally:
        await service.close()
"""

from auditmirror.audit.service import AuditService, create_audit_service
from auditmirror.config import get_settings
from auditmirror.config.settings import Settings
from auditmirror.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def bootstrap(settings: Settings | None = None) -> AuditService:
    """Configure logging and build an (unstarted) AuditService.

    Args:
        settings: Configuration to use (default: :func:`get_settings`)

    Raises:
        UnsupportedDialectError: If the configured dialect is unknown
    """
    settings = settings or get_settings()

    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_secrets=log_config.redact_secrets,
    )

    service = create_audit_service(settings)
    logger.info("auditmirror_bootstrapped", app=settings.app_name, dialect=settings.dialect)
    return service
