from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Favorites ---

class FavoriteEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str | None = None
    url: str | None = None  # Nullable in storage; presentable only when parseable
    order: int

    @property
    def display_title(self) -> str:
        if self.title and self.title.strip():
            return self.title
        return self.url or ""
