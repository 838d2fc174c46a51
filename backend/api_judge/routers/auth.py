from datetime import datetime, timedelta, timezone
from typing import Optional, Dict

from fastapi import APIRouter, HTTPException, Depends, Request, Response
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
import logging

from ..settings import settings

router = APIRouter(prefix="/auth", tags=["auth"])

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

AUTH_COOKIE = "auth-token"


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	username: str


class LogoutResponse(BaseModel):
	success: bool
	message: str


_users: Dict[str, str] = {}


def _ensure_account() -> None:
	username = settings.account
	password = settings.password
	if username and password and username not in _users:
		# Truncate password to 72 bytes for bcrypt compatibility
		password_bytes = password.encode('utf-8')
		if len(password_bytes) > 72:
			password_bytes = password_bytes[:72]
		_users[username] = pwd_context.hash(password_bytes.decode('utf-8', errors='ignore'))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(username: str, password: str) -> Optional[User]:
	_ensure_account()
	hashed = _users.get(username)
	if hashed and verify_password(password, hashed):
		return User(username=username)
	return None


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=1)
	return datetime.now(timezone.utc) + delta


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	expire = _resolve_expiry(expires_delta)
	to_encode.update({"exp": expire})
	encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
	return encoded_jwt


@router.post("/token", response_model=Token)
async def login(response: Response, form_data: OAuth2PasswordRequestForm = Depends()):
	if not form_data.username or not form_data.password:
		raise HTTPException(status_code=400, detail="username and password are required")
	user = authenticate_user(form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect username or password")
	access_token = create_access_token({"sub": user.username})
	response.set_cookie(
		AUTH_COOKIE,
		access_token,
		httponly=True,
		samesite="strict",
		max_age=settings.access_token_expire_minutes * 60,
	)
	return Token(access_token=access_token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response):
	response.delete_cookie(AUTH_COOKIE, httponly=True, samesite="strict")
	return LogoutResponse(success=True, message="Logged out")


def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> User:
	credentials_exception = HTTPException(
		status_code=401,
		detail="Could not validate credentials",
		headers={"WWW-Authenticate": "Bearer"},
	)
	token = token or request.cookies.get(AUTH_COOKIE)
	if not token:
		raise credentials_exception
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		username: str | None = payload.get("sub")
		if username is None:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	# Tokens issued for a previous account configuration are rejected
	if username != settings.account:
		raise credentials_exception
	return User(username=username)


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user
