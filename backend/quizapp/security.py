from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .errors import AuthError
from .settings import Settings

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ROLES = ("student", "admin")


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


@dataclass(frozen=True)
class TokenClaims:
	user_id: int
	username: str
	role: str


class TokenService:
	"""Issues and verifies signed access tokens carrying id, username and role."""

	def __init__(self, settings: Settings) -> None:
		self._secret = settings.jwt_secret_key
		self._algorithm = settings.jwt_algorithm
		self._expire_minutes = settings.access_token_expire_minutes

	def _resolve_expiry(self, expires_delta: Optional[timedelta]) -> datetime:
		delta = expires_delta
		if delta is None:
			if self._expire_minutes > 0:
				delta = timedelta(minutes=self._expire_minutes)
			else:
				delta = timedelta(hours=1)
		return datetime.now(timezone.utc) + delta

	def issue_token(self, user_id: int, username: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
		to_encode = {
			"sub": str(user_id),
			"id": user_id,
			"username": username,
			"role": role,
			"exp": self._resolve_expiry(expires_delta),
		}
		return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

	def verify_token(self, token: str) -> TokenClaims:
		try:
			payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
		except JWTError:
			raise AuthError("Invalid or expired token", status_code=403)
		user_id = payload.get("id")
		username = payload.get("username")
		role = payload.get("role")
		if not isinstance(user_id, int) or not isinstance(username, str) or role not in ROLES:
			raise AuthError("Invalid or expired token", status_code=403)
		return TokenClaims(user_id=user_id, username=username, role=role)
