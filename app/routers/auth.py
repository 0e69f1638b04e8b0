# File: app/routers/auth.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.ratelimit import limiter
from app.core.security import RequestContext, get_context, get_anonymous_context
from app.schemas.auth import RegisterIn, LoginIn
from app.schemas.common import ok
from app.schemas.user import UserOut
from app.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
@limiter.limit("10/minute")
def register(request: Request, body: RegisterIn,
             ctx: RequestContext = Depends(get_anonymous_context),
             db: Session = Depends(get_db)):
    user = accounts.register(db, ctx, body.name, body.phone, body.password, body.email)
    return ok(UserOut.model_validate(user).model_dump(mode="json"), "Registration successful")


@router.post("/login")
@limiter.limit("10/minute")
def login(request: Request, body: LoginIn,
          ctx: RequestContext = Depends(get_anonymous_context),
          db: Session = Depends(get_db)):
    token, user = accounts.login(db, ctx, body.phone, body.password)
    return ok({"token": token, "user": UserOut.model_validate(user).model_dump(mode="json")},
              "Login successful")


@router.get("/me")
def me(ctx: RequestContext = Depends(get_context)):
    return ok(UserOut.model_validate(ctx.user).model_dump(mode="json"))


@router.post("/logout")
def logout(ctx: RequestContext = Depends(get_context), db: Session = Depends(get_db)):
    accounts.logout(db, ctx)
    return ok(message="Logged out successfully")
