"""
Query descriptions handed to the content query executor.

These are plain data carriers. Translating them into store requests and
mapping the rows back to entity classes is the executor's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence, Union
from uuid import UUID


class QueryKind(str, Enum):
    """Result mapping requested from the executor."""
    CONTENT = "content"
    WEB_PAGE = "web_page"


class PathMatchMode(str, Enum):
    """How a tree path is matched."""
    SINGLE = "single"
    CHILDREN = "children"
    SECTION = "section"


@dataclass(frozen=True)
class PathMatch:
    """Tree path filter for web page queries."""
    path: str
    mode: PathMatchMode = PathMatchMode.SINGLE

    @classmethod
    def single(cls, path: str) -> "PathMatch":
        return cls(path, PathMatchMode.SINGLE)

    @classmethod
    def children(cls, path: str) -> "PathMatch":
        return cls(path, PathMatchMode.CHILDREN)

    @classmethod
    def section(cls, path: str) -> "PathMatch":
        return cls(path, PathMatchMode.SECTION)

    def __str__(self) -> str:
        return f"{self.mode.value}:{self.path}"


@dataclass(frozen=True)
class WhereCondition:
    """A single filter condition."""
    operator: str
    column: str
    value: Any = None


class WhereParameters:
    """Collects filter conditions for a query."""

    def __init__(self):
        self.conditions: List[WhereCondition] = []

    def _add(self, operator: str, column: str, value: Any = None) -> "WhereParameters":
        self.conditions.append(WhereCondition(operator, column, value))
        return self

    def where_equals(self, column: str, value: Any) -> "WhereParameters":
        return self._add("equals", column, value)

    def where_in(self, column: str, values: Sequence[Any]) -> "WhereParameters":
        return self._add("in", column, list(values))

    def where_not_null(self, column: str) -> "WhereParameters":
        return self._add("not_null", column)

    def where_not_empty(self, column: str) -> "WhereParameters":
        return self._add("not_empty", column)

    def where_contains_tags(self, column: str, tag_guids: Sequence[UUID]) -> "WhereParameters":
        return self._add("contains_tags", column, list(tag_guids))

    def __len__(self) -> int:
        return len(self.conditions)


WhereAction = Callable[[WhereParameters], Any]


@dataclass
class ContentQuery:
    """Description of a content item or web page query."""
    content_types: List[str] = field(default_factory=list)
    result_type: Optional[type] = None
    kind: QueryKind = QueryKind.CONTENT
    reusable_schema: Optional[str] = None
    with_content_type_fields: bool = False
    language: Optional[str] = None
    top_n: int = 0
    linked_items_depth: int = 0
    include_web_page_data: bool = False
    website_channel_name: Optional[str] = None
    path_match: Optional[PathMatch] = None
    smart_folder: Optional[Union[int, UUID]] = None
    order_by_web_page_order: bool = False
    where: WhereParameters = field(default_factory=WhereParameters)

    def with_linked_items(self, max_linked_items: int) -> "ContentQuery":
        """Expand linked items (with their web page data) to the given depth."""
        if max_linked_items > 0:
            self.linked_items_depth = max_linked_items
            self.include_web_page_data = True
        return self

    def for_website(self, channel_name: str, path_match: Optional[PathMatch] = None) -> "ContentQuery":
        self.website_channel_name = channel_name
        self.path_match = path_match
        return self

    def apply_where(self, action: Optional[WhereAction]) -> "ContentQuery":
        if action is not None:
            action(self.where)
        return self


@dataclass(frozen=True)
class QueryExecutionOptions:
    """Execution flags passed with each query."""
    for_preview: bool = False
    include_secured_items: bool = False


class ContentQueryExecutor(Protocol):
    """Runs queries against the content store and maps the results."""

    async def run(self, query: ContentQuery, options: QueryExecutionOptions) -> Sequence[Any]:
        ...
