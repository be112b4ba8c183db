import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from eventapi.models.user import User, UserIn
from eventapi.security import (
    authenticate_user,
    create_access_token,
    get_current_user,
    get_password_hash,
    get_user,
)
from eventapi.database import database, user_table
from eventapi.utils import response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", status_code=201)
async def register(user: UserIn):
    if await get_user(user.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with that email already exists",
        )
    hashed_password = get_password_hash(user.password)
    query = user_table.insert().values(
        email=user.email,
        username=user.username,
        password_hash=hashed_password,
        role="user",
    )

    logger.debug(query)

    user_id = await database.execute(query)
    return response.created({"id": user_id, "email": user.email}, "User created")


@router.post("/token", status_code=200)
async def login(user: UserIn):
    user = await authenticate_user(user.email, user.password)
    access_token = create_access_token(user.email)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", status_code=200)
async def me(current_user: Annotated[User, Depends(get_current_user)]):
    return response.ok(current_user)
