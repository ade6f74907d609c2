import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import (
    SQLiteEntityRepo,
    SQLiteEntityTypeRepo,
    SQLiteOrganizationRepo,
)
from src.api.auth_utils import decode_access_token
from src.components.lifecycle import EntityLifecycleService, build_config
from src.components.principal import resolve_principal
from src.domain.entities import Principal
from src.domain.errors import MalformedPrincipal
from src.rules.loader import RULES_PATH_ENV, load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("LIFECYCLE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "lifecycle.db")
        self.migrations_dir = str(self.base_dir / "migrations")
        self.rules_path = Path(os.environ.get(RULES_PATH_ENV, str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Repos ---
def get_entity_repo(settings: Settings = Depends(get_settings)) -> SQLiteEntityRepo:
    return SQLiteEntityRepo(settings.db_path)


def get_organization_repo(settings: Settings = Depends(get_settings)) -> SQLiteOrganizationRepo:
    return SQLiteOrganizationRepo(settings.db_path)


def get_entity_type_repo(settings: Settings = Depends(get_settings)) -> SQLiteEntityTypeRepo:
    return SQLiteEntityTypeRepo(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Services ---
def get_lifecycle_service(
    repo: SQLiteEntityRepo = Depends(get_entity_repo),
    org_repo: SQLiteOrganizationRepo = Depends(get_organization_repo),
    type_repo: SQLiteEntityTypeRepo = Depends(get_entity_type_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> EntityLifecycleService:
    """Build a lifecycle service per request; organization data is never cached."""
    return EntityLifecycleService(
        repo=repo,
        org_repo=org_repo,
        type_repo=type_repo,
        time=clock,
        config=build_config(rules),
    )


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def _secret_key(rules: Rules) -> str | None:
    return os.environ.get(rules.api.secret_env)


async def get_optional_principal(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    rules: Rules = Depends(get_rules),
) -> Principal | None:
    """Principal from a bearer token, or None for anonymous callers."""
    # Cookie takes precedence over the header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ")[1]

    if not token:
        return None

    payload = decode_access_token(
        token, secret_key=_secret_key(rules), algorithm=rules.api.token_algorithm
    )
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return resolve_principal(payload)
    except MalformedPrincipal as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.kind, "message": e.message},
        ) from e


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal
