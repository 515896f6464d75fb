import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from todo_api import crud
from todo_api.config import Settings
from todo_api.database import get_db
from todo_api.dependencies import get_current_user_id, get_settings, get_token_service
from todo_api.errors import conflict, not_found, unauthenticated, validation_failed
from todo_api.schemas.user import AuthOut, MeOut, UserCreate, UserLogin, UserOut
from todo_api.utils.auth import TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user, tokens: TokenService) -> AuthOut:
    return AuthOut(token=tokens.issue(user.id), user=UserOut.model_validate(user))


@router.post("/register", response_model=AuthOut, status_code=201)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
):
    if crud.get_user_by_email(db, user.email):
        raise conflict("email already registered", ["email"])

    try:
        hashed = hash_password(user.password, rounds=settings.bcrypt_rounds)
    except ValueError as e:
        # map hashing errors to a field error so client gets a clear message
        raise validation_failed([{"path": "password", "message": str(e)}])

    new_user = crud.create_user(db, user.email, hashed, user.name or "")
    logger.info("registered user %s", new_user.id)
    return _auth_response(new_user, tokens)


@router.post("/login", response_model=AuthOut)
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    db_user = crud.get_user_by_email(db, credentials.email)
    if not db_user or not verify_password(credentials.password, db_user.password_hash):
        logger.info("failed login attempt")
        raise unauthenticated("Invalid credentials")
    return _auth_response(db_user, tokens)


@router.get("/me", response_model=MeOut)
def me(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    db_user = crud.get_user(db, user_id)
    if not db_user:
        raise not_found("user not found")
    return MeOut(user=UserOut.model_validate(db_user))
