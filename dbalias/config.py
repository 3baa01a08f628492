"""Configuration defaults for alias resolution."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

PASSWORD_FILE = Path("~/.pgpass")
CATALOG_FILE = Path("~/db.conf")


class AliasConfig(BaseModel):
    """Locations of the two lookup files plus driver connect options."""

    password_file: Path = PASSWORD_FILE
    catalog_file: Path = CATALOG_FILE
    connect_timeout: float = Field(default=5.0, gt=0)

    def expanded(self) -> AliasConfig:
        """Return a copy with user home markers expanded."""

        return self.model_copy(
            update={
                "password_file": self.password_file.expanduser(),
                "catalog_file": self.catalog_file.expanduser(),
            }
        )

    def with_paths(
        self,
        *,
        password_file: str | Path | None = None,
        catalog_file: str | Path | None = None,
    ) -> AliasConfig:
        """Return a copy with the given file paths overridden."""

        updates: dict[str, object] = {}
        if password_file is not None:
            updates["password_file"] = Path(password_file)
        if catalog_file is not None:
            updates["catalog_file"] = Path(catalog_file)
        return self.model_copy(update=updates)


__all__ = ["AliasConfig", "CATALOG_FILE", "PASSWORD_FILE"]
