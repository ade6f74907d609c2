from pydantic import BaseModel, Field

from src.domain.entities import EntityStatus, VisibilityScope


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class EntityRules(BaseModel):
    id_length: int = 7
    id_alphabet: str = "0123456789abcdefghijklmnopqrstuvwxyz"
    slug_pattern: str = r"^[a-z0-9-]{1,100}$"
    slug_max_length: int = 100
    name_max_length: int = 200
    default_visibility: VisibilityScope = "members"


class LifecycleRules(BaseModel):
    org_admin_deletable_statuses: list[EntityStatus] = Field(default_factory=lambda: ["draft"])
    require_schema_on_submit: bool = True
    id_generation_attempts: int = 5


class LoggingRules(BaseModel):
    level: str = "INFO"


class ApiRules(BaseModel):
    token_algorithm: str = "HS256"
    secret_env: str = "LIFECYCLE_SECRET_KEY"


class Rules(BaseModel):
    project: ProjectRules
    entities: EntityRules = Field(default_factory=EntityRules)
    lifecycle: LifecycleRules = Field(default_factory=LifecycleRules)
    logging: LoggingRules = Field(default_factory=LoggingRules)
    api: ApiRules = Field(default_factory=ApiRules)
