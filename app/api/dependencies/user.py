import logging
from typing import Annotated

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from api.dependencies.database import get_db_session
from core.config import settings
from db.crud.user import UsersCrud
from schemas.user import OutUserSchema

logger = logging.getLogger(__name__)

# Tokens are issued by the identity service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_subject(token: str) -> str:
    """Return the staff email carried in the token's ``sub`` claim."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise _credentials_exception() from e
    email = payload.get("sub")
    if not email:
        raise _credentials_exception()
    return email


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session)
) -> OutUserSchema:
    email = decode_subject(token)
    user = await UsersCrud(db).get_by_email(email=email)
    if user is None:
        raise _credentials_exception()
    return OutUserSchema.model_validate(user)


async def get_current_active_user(current_user: OutUserSchema = Depends(get_current_user)) -> OutUserSchema:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive staff account")
    return current_user


# The staff member acting on a request
CurrentStaffDep = Annotated[OutUserSchema, Depends(get_current_active_user)]
