"""Change-set discovery and fuzzy ranking."""

from .changes import (
    DEFAULT_BRANCH_CANDIDATES,
    ChangeSet,
    ChangeSetResolver,
    resolve_changed_files,
    union_paths,
)
from .git import ChangeRecord, GitClient
from .ranking import ScoredCandidate, keyword_score, rank, score, split_keywords
from .session_log import SessionLogger

__all__ = [
    "ChangeRecord",
    "ChangeSet",
    "ChangeSetResolver",
    "DEFAULT_BRANCH_CANDIDATES",
    "GitClient",
    "ScoredCandidate",
    "SessionLogger",
    "keyword_score",
    "rank",
    "resolve_changed_files",
    "score",
    "split_keywords",
    "union_paths",
]
