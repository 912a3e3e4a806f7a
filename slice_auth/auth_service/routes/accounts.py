"""
Account routes: signup, login, logout, me and account deletion.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..accounts import AccountManager
from ..db import get_db
from ..dependencies import get_accounts, get_current_claim
from ..schemas import (
    ErrorResponse,
    LoginRequest,
    SessionClaim,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)

router = APIRouter(tags=["auth"])

_unauthorized = {401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"}}


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email or password"},
        409: {"model": ErrorResponse, "description": "Email already exists"},
        500: {"model": ErrorResponse, "description": "Signup failed"},
    },
)
def signup(
    payload: SignupRequest,
    db: Session = Depends(get_db),
    accounts: AccountManager = Depends(get_accounts),
):
    return accounts.register(db, payload.email, payload.password)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    accounts: AccountManager = Depends(get_accounts),
):
    return accounts.login(db, payload.email, payload.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, responses=_unauthorized)
def logout(
    claim: dict = Depends(get_current_claim),
    accounts: AccountManager = Depends(get_accounts),
):
    """Confirms the caller holds a valid token. Nothing is revoked server-side."""
    accounts.logout(claim)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=SessionClaim, responses=_unauthorized)
def me(
    claim: dict = Depends(get_current_claim),
    accounts: AccountManager = Depends(get_accounts),
):
    return accounts.whoami(claim)


@router.delete(
    "/account",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        **_unauthorized,
        404: {"model": ErrorResponse, "description": "User not found or already deleted"},
    },
)
def delete_account(
    claim: dict = Depends(get_current_claim),
    db: Session = Depends(get_db),
    accounts: AccountManager = Depends(get_accounts),
):
    accounts.delete_account(db, claim)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
