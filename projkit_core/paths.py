"""Platform-independent locations for projkit's own files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir, user_data_dir

_DEFAULT_APP_NAME = "projkit"
_DEFAULT_APP_AUTHOR = "projkit"

PROJECTS_FILENAME = "projects.txt"
ERRORS_FILENAME = "errors.log"
UPDATES_FILENAME = "updates.yaml"


@dataclass(frozen=True)
class AppPaths:
    """Expose where the project list, error log and update schedule live."""

    app_name: str = _DEFAULT_APP_NAME
    app_author: str = _DEFAULT_APP_AUTHOR
    config_dir_override: Path | None = None
    cache_dir_override: Path | None = None
    data_dir_override: Path | None = None

    @classmethod
    def under(cls, base: Path) -> "AppPaths":
        """Keep every file below ``base``; used by tests and portable installs."""

        base = Path(base)
        return cls(
            config_dir_override=base / "config",
            cache_dir_override=base / "cache",
            data_dir_override=base / "data",
        )

    def config_dir(self) -> Path:
        return self.config_dir_override or Path(user_config_dir(self.app_name, appauthor=self.app_author))

    def cache_dir(self) -> Path:
        return self.cache_dir_override or Path(user_cache_dir(self.app_name, appauthor=self.app_author))

    def data_dir(self) -> Path:
        return self.data_dir_override or Path(user_data_dir(self.app_name, appauthor=self.app_author))

    @property
    def projects_file(self) -> Path:
        return self.data_dir() / PROJECTS_FILENAME

    @property
    def errors_log(self) -> Path:
        return self.cache_dir() / ERRORS_FILENAME

    @property
    def update_schedule(self) -> Path:
        return self.config_dir() / UPDATES_FILENAME
