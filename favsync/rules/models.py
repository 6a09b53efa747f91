from typing import Literal

from pydantic import BaseModel, Field, field_validator


class OrderingRules(BaseModel):
    order_step: int = Field(default=1024, ge=1)
    min_order: int = 0

class ValidationRules(BaseModel):
    allowed_url_schemes: list[str] = Field(
        default_factory=lambda: ["http", "https", "ftp", "file", "about"]
    )

    @field_validator("allowed_url_schemes")
    @classmethod
    def _lowercase_schemes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one URL scheme must be allowed")
        return [scheme.lower() for scheme in value]

class StorageRules(BaseModel):
    db_path: str = "favorites.db"
    busy_timeout_seconds: float = Field(default=5.0, gt=0)

class LoggingRules(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

class FavoritesRules(BaseModel):
    ordering: OrderingRules = Field(default_factory=OrderingRules)
    validation: ValidationRules = Field(default_factory=ValidationRules)
    storage: StorageRules = Field(default_factory=StorageRules)
    logging: LoggingRules = Field(default_factory=LoggingRules)
