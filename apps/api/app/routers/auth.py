from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.audit import write_audit
from app.config import settings
from app.deps import get_current_user, get_db
from app.models import Session as DbSession, User
from app.rate_limit import limiter
from app.schemas import LoginIn, SignupIn, UserOut
from app.security import (
  SESSION_COOKIE_NAME,
  SESSION_TTL_DAYS,
  hash_password,
  new_session_expires_at,
  normalize_email,
  verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def user_out(u: User) -> UserOut:
  return UserOut(
    id=u.id,
    email=u.email,
    name=u.display_name,
    firstName=u.first_name,
    lastName=u.last_name,
    imageUrl=u.profile_image_url,
    plan=u.plan,
  )


def _client_ip(request: Request) -> str:
  return request.client.host if request.client else "unknown"


def _rate_limit_or_429(*, key: str, limit: int, window_seconds: int) -> None:
  allowed, retry_after = limiter.hit(key, limit=limit, window_seconds=window_seconds)
  if allowed:
    return
  raise HTTPException(
    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    detail={"code": "rate_limited", "message": "Too many requests", "retryAfterSeconds": retry_after},
    headers={"Retry-After": str(retry_after)},
  )


async def _start_session(db: AsyncSession, u: User, request: Request, response: Response) -> None:
  s = DbSession(
    user_id=u.id,
    created_ip=_client_ip(request),
    user_agent=request.headers.get("user-agent"),
    expires_at=new_session_expires_at(),
  )
  db.add(s)
  await db.flush()
  response.set_cookie(
    key=SESSION_COOKIE_NAME,
    value=s.id,
    httponly=True,
    secure=settings.cookie_secure,
    samesite="lax",
    domain=settings.cookie_domain or None,
    max_age=int(SESSION_TTL_DAYS * 86400),
    expires=s.expires_at,
    path="/",
  )


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupIn, request: Request, response: Response, db: AsyncSession = Depends(get_db)) -> UserOut:
  ip = _client_ip(request)
  _rate_limit_or_429(key=f"auth:signup:ip:{ip}", limit=int(settings.rate_limit_signup_ip_per_minute), window_seconds=60)

  email = normalize_email(payload.email)
  if "@" not in email:
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid email")
  existing = await db.execute(select(User.id).where(User.email == email))
  if existing.scalar_one_or_none():
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

  u = User(
    email=email,
    first_name=(payload.firstName or "").strip() or None,
    last_name=(payload.lastName or "").strip() or None,
    password_hash=hash_password(payload.password),
  )
  db.add(u)
  await db.flush()
  await write_audit(db, event_type="auth.signup", entity_type="User", entity_id=u.id, actor_id=u.id, payload={"ip": ip})
  await _start_session(db, u, request, response)
  await db.commit()
  logger.info("User %s signed up", u.id)
  return user_out(u)


@router.post("/login", response_model=UserOut)
async def login(payload: LoginIn, request: Request, response: Response, db: AsyncSession = Depends(get_db)) -> UserOut:
  ip = _client_ip(request)
  email = normalize_email(payload.email)
  _rate_limit_or_429(key=f"auth:login:ip:{ip}", limit=int(settings.rate_limit_login_ip_per_minute), window_seconds=60)
  if email:
    _rate_limit_or_429(key=f"auth:login:email:{email}", limit=int(settings.rate_limit_login_email_per_minute), window_seconds=60)

  res = await db.execute(select(User).where(User.email == email))
  u = res.scalar_one_or_none()
  if not u or not verify_password(payload.password, u.password_hash):
    await write_audit(db, event_type="auth.login.failed", entity_type="Auth", entity_id=None, payload={"email": email, "ip": ip})
    await db.commit()
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
  if not u.active:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User disabled")

  await _start_session(db, u, request, response)
  await write_audit(db, event_type="auth.login", entity_type="User", entity_id=u.id, actor_id=u.id, payload={"ip": ip})
  await db.commit()
  return user_out(u)


@router.post("/logout")
async def logout(
  response: Response,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> dict:
  await db.execute(delete(DbSession).where(DbSession.user_id == user.id))
  response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
  await db.commit()
  return {"ok": True}


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)) -> UserOut:
  return user_out(user)
