from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    repo_root: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def saves_dir(self) -> Path:
        return self.userdata_dir / "saves"

    @property
    def hall_of_fame_path(self) -> Path:
        return self.userdata_dir / "hall_of_fame.json"

    @property
    def telemetry_path(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"


def default_userdata_dir(repo_root: Path) -> Path:
    """Source checkouts keep userdata beside the project; installed copies use the working directory."""
    if (repo_root / "pyproject.toml").is_file():
        return repo_root / "userdata"
    return Path.cwd() / "userdata"


def get_paths(userdata_dir: Path | None = None) -> Paths:
    # src/cardconquest/paths.py -> parents: [cardconquest, src, repo_root]
    package_dir = Path(__file__).resolve().parent
    repo_root = package_dir.parents[1]
    data_dir = package_dir / "data"
    return Paths(
        repo_root=repo_root,
        data_dir=data_dir,
        schema_dir=data_dir / "schemas",
        userdata_dir=userdata_dir or default_userdata_dir(repo_root),
    )
