from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .branch import LocalBranch, RemoteBranch
from .config import BranchesConfig
from .fuzzy import FuzzyRanker
from .tab import FilterableTab

LOCAL_TAB = "local"
REMOTE_TAB = "remote"


@dataclass
class AppState:
    cwd: Path
    config: BranchesConfig
    local_tab: FilterableTab[LocalBranch]
    remote_tab: FilterableTab[RemoteBranch]
    branch_type: str = LOCAL_TAB
    error_message: str | None = None
    visible_capacity: int = 0
    dirty: bool = True
    should_quit: bool = False
    skip_next_lf: bool = False
    last_refresh_at: dict[str, float] = field(default_factory=dict)


def create_state(
    cwd: Path,
    config: BranchesConfig | None = None,
    ranker: FuzzyRanker | None = None,
    visible_capacity: int = 0,
) -> AppState:
    return AppState(
        cwd=cwd,
        config=config if config is not None else BranchesConfig(),
        local_tab=FilterableTab(ranker),
        remote_tab=FilterableTab(ranker),
        visible_capacity=visible_capacity,
    )
