from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.dependencies import get_current_user
from sidequest.models.user import User
from sidequest.schemas.auth import ProfileUpdate, TokenResponse, UserLogin, UserRegister, UserResponse
from sidequest.services.auth_service import (
    authenticate_user,
    create_access_token,
    register_user,
    update_profile,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_for(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create an account and sign it in straight away."""
    try:
        user = await register_user(
            db,
            email=body.email,
            password=body.password,
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
async def login(body: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, identifier=body.identifier, password=body.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_for(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def profile(
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update the signed-in user's email, names or avatar. Omitted fields are left alone."""
    try:
        return await update_profile(db, current_user, body.model_dump(exclude_unset=True))
    except ValueError as e:
        detail = str(e)
        code = status.HTTP_409_CONFLICT if "already registered" in detail else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=detail)
