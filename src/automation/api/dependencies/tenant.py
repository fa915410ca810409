"""Tenant header extraction."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.automation.core.logging import bind_tenant_context


async def get_tenant_id_from_header(
    x_tenant_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Extract the calling tenant from the X-Tenant-ID header."""
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )
    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header must be a UUID",
        ) from e

    bind_tenant_context(tenant_id)
    return tenant_id


TenantId = Annotated[UUID, Depends(get_tenant_id_from_header)]
