"""Admin audit trail."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from coworking.models.admin_log import AdminAction, AdminLog

logger = logging.getLogger(__name__)


async def record_admin_action(
    db: AsyncSession,
    admin_id: int,
    action: AdminAction,
    entity_type: str,
    entity_id: int | None,
    details: dict | None = None,
) -> AdminLog:
    """Write an audit row in the same transaction as the action itself."""
    entry = AdminLog(
        admin_id=admin_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(entry)
    await db.flush()
    logger.info("Admin %s: %s %s#%s", admin_id, action.value, entity_type, entity_id)
    return entry
