from typing import Callable, Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_token_service
from ..errors import AuthError
from ..models import User
from ..schemas import LoginRequest, LoginResponse, RegisterRequest, Token, UserOut
from ..security import ROLES, TokenClaims, TokenService, hash_password, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def authenticate_user(db: Session, username: str, password: str) -> User:
	user_row = db.query(User).filter(User.username == username).first()
	if user_row is None:
		raise HTTPException(status_code=404, detail="User not found.")
	if not verify_password(password, user_row.password_hash):
		raise HTTPException(status_code=401, detail="Invalid credentials.")
	return user_row


def get_current_user(
	token: Optional[str] = Depends(oauth2_scheme),
	tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
	if not token:
		raise AuthError("Not authenticated", status_code=401)
	# Role claim is trusted as issued; no per-request identity lookup
	return tokens.verify_token(token)


def require_role(role: str) -> Callable[..., TokenClaims]:
	plural = {"admin": "Admins", "student": "Students"}.get(role, role)

	def _dependency(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
		if user.role != role:
			raise AuthError(f"Access forbidden: {plural} only.", status_code=403)
		return user

	return _dependency


require_admin = require_role("admin")
require_student = require_role("student")


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)):
	user = authenticate_user(db, req.username, req.password)
	token = tokens.issue_token(user.id, user.username, user.role)
	return LoginResponse(
		message="Login successful",
		token=token,
		user=UserOut(id=user.id, username=user.username, role=user.role),
	)


@router.post("/token", response_model=Token)
async def token_login(
	form_data: OAuth2PasswordRequestForm = Depends(),
	db: Session = Depends(get_db),
	tokens: TokenService = Depends(get_token_service),
):
	user = authenticate_user(db, form_data.username, form_data.password)
	return Token(access_token=tokens.issue_token(user.id, user.username, user.role))


@router.get("/me", response_model=UserOut)
async def me(user: TokenClaims = Depends(get_current_user)):
	return UserOut(id=user.user_id, username=user.username, role=user.role)


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	username = (req.username or "").strip()
	password = req.password or ""
	role = (req.role or "").strip()
	if not username or not password or not role:
		raise HTTPException(status_code=400, detail="All fields are required.")
	if role not in ROLES:
		raise HTTPException(status_code=400, detail="Invalid role. Must be 'student' or 'admin'.")
	if len(username) > 100:
		raise HTTPException(status_code=400, detail="username must be at most 100 characters")
	existing = db.query(User).filter(User.username == username).first()
	if existing:
		raise HTTPException(status_code=409, detail="Username already exists.")
	row = User(username=username, password_hash=hash_password(password), role=role)
	db.add(row)
	try:
		db.commit()
	except IntegrityError:
		# lost a race with a concurrent registration of the same name
		db.rollback()
		raise HTTPException(status_code=409, detail="Username already exists.")
	db.refresh(row)
	return {
		"message": "User registered successfully. Please login.",
		"user": UserOut(id=row.id, username=row.username, role=row.role).model_dump(),
	}
