# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin authentication API routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.api.schemas import AdminLogin, AdminResponse, Token
from eventreg_server.auth import create_access_token, require_admin, verify_password
from eventreg_server.database import get_db
from eventreg_server.models import Admin

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(
    data: AdminLogin,
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate an admin by email and password; return JWT."""
    result = await db.execute(select(Admin).where(Admin.email == data.email.strip().lower()))
    admin = result.scalar_one_or_none()
    if not admin or not verify_password(data.password, admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="البريد الإلكتروني أو كلمة المرور غير صحيحة",
        )
    if not admin.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="حساب المدير غير نشط")
    token = create_access_token({"sub": str(admin.id)})
    return Token(access_token=token)


@router.get("/me", response_model=AdminResponse)
async def get_me(
    admin_id: int = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminResponse:
    """Current admin profile."""
    admin = await db.get(Admin, admin_id)
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return AdminResponse.model_validate(admin)
