from fastapi import APIRouter, status

from app.dependencies import CurrentUserId, UserServiceDep
from app.models import Token, UserCreate, UserLogin, UserRead

router = APIRouter(tags=["users"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, service: UserServiceDep):
    """Register a new user"""
    return await service.register(user_data)


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, service: UserServiceDep):
    """Exchange email and password for a bearer token"""
    return await service.authenticate(credentials.email, credentials.password)


@router.get("/users/me", response_model=UserRead)
async def profile(user_id: CurrentUserId, service: UserServiceDep):
    return await service.get_user(user_id)
