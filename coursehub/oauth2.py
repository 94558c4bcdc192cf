from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from coursehub.config import settings
from coursehub.dependencies.getdb import get_db
from coursehub.errors import AuthenticationError
from coursehub.models import User
from coursehub.security.json_bearer import OAuth2PasswordBearerWithJSON
from coursehub.services.token_blacklist import is_blacklisted

bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_bearer = OAuth2PasswordBearerWithJSON(
    tokenUrl="api/users/login",
    scheme_name="JWT",
    description="Log in through /api/users/login and paste the token",
    auto_error=True,
)
optional_oauth2_bearer = OAuth2PasswordBearerWithJSON(
    tokenUrl="api/users/login", scheme_name="JWT", auto_error=False
)

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


### Check if user is in our DATABASE ###
def authenticate_user(email: str, password: str, db: Session) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user or not bcrypt_context.verify(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")
    return user


### Create a JWT token for user ###
def create_access_token(
    email: str, user_id: int, user_role: str, expires_delta: timedelta = ACCESS_TOKEN_EXPIRE
) -> str:
    encode = {
        "sub": email,
        "id": user_id,
        "role": user_role,
        "token_type": "access_token",
    }
    expire = datetime.now(timezone.utc) + expires_delta
    encode.update({"exp": expire})
    return jwt.encode(encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Validate a bearer token and return the caller identity.

    The identity is ``{"user_id", "email", "role", "exp"}``. Both the REST
    dependency and the live chat handshake go through here.
    """
    if is_blacklisted(token):
        raise AuthenticationError("Token has been revoked")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Access token expired")
    except JWTError:
        raise AuthenticationError("Invalid token")

    email: Optional[str] = payload.get("sub")
    user_id: Optional[int] = payload.get("id")
    user_role: Optional[str] = payload.get("role")
    if email is None or user_id is None or user_role is None:
        raise AuthenticationError()
    return {
        "user_id": user_id,
        "email": email,
        "role": user_role,
        "exp": payload.get("exp"),
    }


def identity_for_user(db: Session, identity: dict) -> dict:
    user = db.query(User).filter(User.id == identity["user_id"]).first()
    if user is None or not user.is_active or user.role != identity["role"]:
        raise AuthenticationError()
    return identity


### Checking if the JWT Token of our user is correct ###
async def get_current_user_jwt(
    token: str = Depends(oauth2_bearer), db: Session = Depends(get_db)
) -> dict:
    return identity_for_user(db, decode_access_token(token))


async def get_optional_user_jwt(
    token: Optional[str] = Depends(optional_oauth2_bearer), db: Session = Depends(get_db)
) -> Optional[dict]:
    if token is None:
        return None
    return identity_for_user(db, decode_access_token(token))
