"""Infrastructure domain: git collaborator, YAML config and remediation guidance.

Note: ``tierguard.infrastructure.config`` is intentionally NOT re-exported here
because it depends on the rule registry, and the rules depend (through the
diff mapper) on the git helpers below.  Import it directly::

    from tierguard.infrastructure.config import load_config, ConfigError
"""

# tierguard:domain=infrastructure

from tierguard.infrastructure.git import (
    BASE_ENV,
    HEAD_ENV,
    all_files,
    changed_files,
    changed_paths,
    file_diff,
    merge_base,
    resolve_base,
    resolve_head,
    tracked_files,
    untracked_files,
)
from tierguard.infrastructure.guidance import GUIDANCE_DIR, GUIDANCE_DOCS, write_guidance

__all__ = [
    "BASE_ENV",
    "GUIDANCE_DIR",
    "GUIDANCE_DOCS",
    "HEAD_ENV",
    "all_files",
    "changed_files",
    "changed_paths",
    "file_diff",
    "merge_base",
    "resolve_base",
    "resolve_head",
    "tracked_files",
    "untracked_files",
    "write_guidance",
]
