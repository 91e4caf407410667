from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from ..paths import project_root
from .mapping import MappingStore

if TYPE_CHECKING:
    from .config import ProjectConfig

CONFIG_FILE = "agentmux.yaml"
LEGACY_CONFIG_FILE = "agentmux.json"


@dataclass
class ProjectContext:
    """Everything a command needs about one project directory.

    Core operations take this explicitly instead of reading the process CWD.
    """

    root: Path
    config: Optional["ProjectConfig"] = field(default=None, repr=False)
    mapping: Optional[Dict[str, str]] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Optional[str] = None) -> "ProjectContext":
        return cls(root=project_root(path))

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    @property
    def legacy_config_path(self) -> Path:
        return self.root / LEGACY_CONFIG_FILE

    @property
    def tmp_dir(self) -> Path:
        return self.root / "tmp"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def scenarios_dir(self) -> Path:
        return self.root / "scenarios"

    @property
    def current_scenario_path(self) -> Path:
        return self.tmp_dir / "current_scenario.txt"

    @property
    def mapping_store(self) -> MappingStore:
        return MappingStore(self.tmp_dir)

    def load_mapping(self, *, reload: bool = False) -> Dict[str, str]:
        if self.mapping is None or reload:
            self.mapping = self.mapping_store.load()
        return self.mapping

    def remember_mapping(self, mapping: Dict[str, str]) -> None:
        self.mapping = dict(mapping)
