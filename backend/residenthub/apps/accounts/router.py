from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from residenthub.database import get_db
from residenthub.security import get_current_active_user

from . import models, schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def signup(payload: schemas.SignupRequest, db: Session = Depends(get_db)):
    user = services.signup_admin(db, payload)
    return services.issue_token_response(user)


@router.post("/login", response_model=schemas.TokenResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = services.authenticate_user(db, email=payload.email, password=payload.password)
    return services.issue_token_response(user)


@router.post("/forgot-password", response_model=schemas.ForgotPasswordResponse)
def forgot_password(payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    raw_token = services.request_password_reset(db, email=payload.email)
    return services.forgot_password_response(raw_token)


@router.post("/reset-password", response_model=schemas.MessageResponse)
def reset_password(payload: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    services.reset_password(db, token=payload.token, new_password=payload.new_password)
    return {"message": "Password has been reset successfully"}


@router.get("/me", response_model=schemas.UserRead)
def read_me(current_user: models.User = Depends(get_current_active_user)):
    return current_user


@router.patch("/me", response_model=schemas.ProfileUpdateResponse)
def update_me(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    email_changed = services.update_profile(db, user=current_user, payload=payload)
    token = services.issue_token_response(current_user).access_token if email_changed else None
    return schemas.ProfileUpdateResponse(
        message="Profile updated successfully",
        user=schemas.UserRead.model_validate(current_user),
        access_token=token,
    )
