"""Data models for indexing requests.

The JSON keys mirror the wire format expected by the scheduler that drives
this server: {"CloneURL": "...", "RepoID": 123}. Key names are matched
case-insensitively ("cloneURL", "repoid"), the way Go schedulers encode them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

UINT32_MAX = 2**32 - 1


class IndexRequest(BaseModel):
    """A request to (re)index a single repository."""

    # Unknown keys are a decode error, and values are never coerced
    # (e.g. "100" is not accepted for RepoID).
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    CloneURL: str = ""
    RepoID: int = Field(default=0, ge=0, le=UINT32_MAX)

    @model_validator(mode="before")
    @classmethod
    def _fold_key_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        by_fold = {name.casefold(): name for name in cls.model_fields}
        folded = {}
        for key, value in data.items():
            # Later duplicates win; anything unmatched is left for extra="forbid".
            name = by_fold.get(key.casefold(), key) if isinstance(key, str) else key
            folded[name] = value
        return folded
