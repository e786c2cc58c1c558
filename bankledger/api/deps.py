from __future__ import annotations

from typing import Iterator

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from bankledger.core.config import Settings
from bankledger.core.errors import ErrorCodes
from bankledger.core.security import decode_access_token
from bankledger.models.user import User
from bankledger.transfers.engine import TransferEngine

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_transfer_engine(request: Request) -> TransferEngine:
    return request.app.state.transfer_engine


def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    if not cred or not cred.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        auth_user_id = decode_access_token(cred.credentials, settings)
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.scalar(select(User).where(User.auth_user_id == auth_user_id))
    if not user:
        raise HTTPException(status_code=404, detail={"code": ErrorCodes.USER_NOT_ONBOARDED, "message": "User not onboarded"})
    return user
