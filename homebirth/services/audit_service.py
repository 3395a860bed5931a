"""Audit trail service."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.models.admin import AuditLog


class AuditService:
    """Service for audit logging of admin and security-relevant actions."""

    async def log_action(
        self,
        db: AsyncSession,
        user_id: UUID | None,
        action: str,
        resource_type: str,
        resource_id: UUID | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLog:
        """Log an action.

        Args:
            db: Database session
            user_id: Profile performing the action (None for system actions)
            action: Action name (e.g., "verification_update")
            resource_type: Resource type (e.g., "profile", "dispute")
            resource_id: Resource ID
            old_values: Previous state
            new_values: New state
            ip_address: Client IP
            user_agent: Client user agent

        Returns:
            Created audit log entry
        """
        audit = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(audit)
        return audit

    async def log_verification_change(
        self,
        db: AsyncSession,
        admin_id: UUID,
        profile_id: UUID,
        old_status: str,
        new_status: str,
        ip_address: str | None = None,
    ) -> AuditLog:
        """Log an admin verification decision."""
        return await self.log_action(
            db=db,
            user_id=admin_id,
            action="verification_update",
            resource_type="profile",
            resource_id=profile_id,
            old_values={"verification_status": old_status},
            new_values={"verification_status": new_status},
            ip_address=ip_address,
        )

    async def log_dispute_action(
        self,
        db: AsyncSession,
        user_id: UUID,
        action: str,
        dispute_id: UUID,
        old_status: str | None,
        new_status: str,
        ip_address: str | None = None,
    ) -> AuditLog:
        """Log dispute action."""
        return await self.log_action(
            db=db,
            user_id=user_id,
            action=action,
            resource_type="dispute",
            resource_id=dispute_id,
            old_values={"status": old_status} if old_status else None,
            new_values={"status": new_status},
            ip_address=ip_address,
        )


audit_service = AuditService()
