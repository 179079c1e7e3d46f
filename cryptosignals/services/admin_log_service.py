"""Admin activity logging."""
from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from cryptosignals.models import AdminLog


class AdminLogService:
    """Service for recording and reading admin actions."""

    @staticmethod
    async def log_action(
        db: AsyncSession,
        admin_id: str,
        action: str,
        target_table: Optional[str] = None,
        target_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> AdminLog:
        """Persist an admin action."""
        entry = AdminLog(
            admin_id=admin_id,
            action=action,
            target_table=target_table,
            target_id=target_id,
            notes=notes
        )
        db.add(entry)
        await db.commit()
        return entry

    @staticmethod
    async def get_recent(db: AsyncSession, limit: int = 100) -> List[AdminLog]:
        result = await db.execute(
            select(AdminLog).order_by(desc(AdminLog.timestamp)).limit(limit)
        )
        return list(result.scalars().all())
