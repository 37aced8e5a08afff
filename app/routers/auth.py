from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_handler import sign_jwt
from auth.passwords_handler import hash_password_async, verify_password_async
from core.db import get_db
from core.environment import get_admin_emails
from models.user import User
from schemas.user import UserSchema, UserLoginSchema

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register")
async def register_user(user: UserSchema, db: AsyncSession = Depends(get_db)):
    email = user.email.lower()
    existing_user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if existing_user:
        raise HTTPException(status_code=400, detail="User already exists.")

    new_user = User(
        email=email,
        fullname=user.fullname,
        password=await hash_password_async(user.password),
        is_admin=email in get_admin_emails(),
    )
    db.add(new_user)

    try:
        await db.commit()
    except IntegrityError:
        # another request registered the same email first
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered.")

    return sign_jwt(new_user.email, is_admin=new_user.is_admin)


@router.post("/login")
async def login_user(user: UserLoginSchema, db: AsyncSession = Depends(get_db)):
    existing_user = (
        await db.execute(select(User).where(User.email == user.email.lower()))
    ).scalar_one_or_none()
    if not existing_user:
        raise HTTPException(status_code=404, detail="User not found.")

    password_valid = await verify_password_async(user.password, existing_user.password)
    if not password_valid:
        raise HTTPException(status_code=401, detail="Invalid password.")

    return sign_jwt(existing_user.email, is_admin=existing_user.is_admin)
