from typing import Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 50


# ------------------------------------------------------------------------------
# Schemas
# ------------------------------------------------------------------------------

class SearchArgs(BaseModel):
    query: str = Field(..., description="Search query (case-insensitive, supports regex patterns)")
    category: Optional[str] = Field(None, description="Limit the search to one category, e.g. 'pentesting-web'")
    limit: int = Field(DEFAULT_SEARCH_LIMIT, ge=1, description=f"Maximum pages to return (capped at {MAX_SEARCH_LIMIT})")

    @field_validator("limit")
    @classmethod
    def cap_limit(cls, v: int) -> int:
        return min(v, MAX_SEARCH_LIMIT)

class PageArgs(BaseModel):
    path: str = Field(..., description="Relative path to the markdown file (e.g. 'src/linux-hardening/privilege-escalation/README.md')")

class SectionArgs(BaseModel):
    path: str = Field(..., description="Relative path to the markdown file")
    section: str = Field(..., description="Section header to extract (case-insensitive substring match)")

class ListCategoriesArgs(BaseModel):
    category: Optional[str] = Field(None, description="Category to expand into its full page tree (optional)")

class QuickLookupArgs(BaseModel):
    topic: str = Field(..., description="Attack or technique to look up, e.g. 'sqli', 'ssrf', 'kerberoasting'")
    category: Optional[str] = Field(None, description="Limit the lookup to one category (optional)")
