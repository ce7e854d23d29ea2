from fastapi import APIRouter, Depends
from .models import ProfileUpdate, Session, UserLogin, UserRegister
from .manager import get_current_user, get_profile, login_user, register_user, update_profile
from emergency_hub.shared.response import success_response

router = APIRouter()


@router.post("/register")
async def register(user: UserRegister):
    """Register new user"""
    return success_response(await register_user(user), "User registered successfully")


@router.post("/login")
async def login(credentials: UserLogin):
    """Authenticate user"""
    return success_response(await login_user(credentials), "Login successful")


@router.get("/me")
async def get_me(session: Session = Depends(get_current_user)):
    """Get current user details"""
    return success_response(await get_profile(session), "User details retrieved")


@router.patch("/me")
async def update_me(changes: ProfileUpdate, session: Session = Depends(get_current_user)):
    """Update current user's profile"""
    return success_response(await update_profile(session, changes), "Profile updated")
