from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import ConfigError, ConfigIssue, ErrorKind
from .ini import Document, PathLike
from .paths import default_songlength_path, resolve_config_path
from .reader import SettingsReader
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    ok: bool
    path: Optional[Path]
    settings: Settings
    issues: List[ConfigIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "path": str(self.path) if self.path is not None else None,
            "settings": self.settings.to_dict(),
            "issues": [
                {
                    "kind": issue.kind.value,
                    "message": issue.message,
                    "section": issue.section,
                    "key": issue.key,
                    "line": issue.line,
                }
                for issue in self.issues
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


def load_config(
    path: Optional[PathLike] = None,
    *,
    save: bool = True,
    create: bool = True,
    settings: Optional[Settings] = None,
    songlength_default: Optional[Callable[[], Optional[Path]]] = default_songlength_path,
) -> LoadResult:
    """Load settings from ``path`` (or the resolved default location).

    Missing sections and keys are added to the file as empty placeholders; the
    file is only rewritten when that happened and ``save`` is set. With
    ``create`` unset a missing file is an error instead of being created and
    the default location is resolved without creating directories. Problems
    are reported in the result, never raised: at worst the settings are the
    defaults and ``ok`` is False.
    """
    if settings is None:
        settings = Settings()
    else:
        settings.clear()

    try:
        cfg_path = Path(path) if path is not None else resolve_config_path(create_dirs=create)
    except ConfigError as e:
        logger.error("%s", e)
        return LoadResult(False, None, settings, [ConfigIssue(ErrorKind.IO, str(e))])

    document = Document()
    opened = document.open_or_create(cfg_path) if create else document.load(cfg_path)
    if not opened:
        logger.error("Error reading config file %s", cfg_path)
        message = "cannot open file" if create or cfg_path.exists() else "file does not exist"
        issues = document.issues or [ConfigIssue(ErrorKind.IO, message)]
        return LoadResult(False, cfg_path, settings, issues)

    reader = SettingsReader(document, songlength_default)
    reader.read(settings)
    if document.changed and not save:
        logger.info("Not saving placeholders added to %s", cfg_path)
    saved = document.close(save=save)

    return LoadResult(saved, cfg_path, settings, document.issues + reader.issues)
