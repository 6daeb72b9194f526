"""serverview.core -- the listing engine.

Architecture::

    Layer 1 -- Records & Errors
        errors.py       Structured error hierarchy (ServerViewError)
        events.py       Per-record ChangeEmitter / Subscribable
        records.py      Record protocol, ServerRecord, field access

    Layer 2 -- Query & Ordering
        query.py        Search-string tokenizer, term parser, compiler
        filters.py      FilterConfig, PinConfig, composed predicate
        ordering.py     SortOrder, comparator chain, sort_and_filter

    Layer 3 -- Recompute
        coalesce.py     ChangeCoalescer (debounce window)
        preferences.py  PreferenceStore + sort-order persistence
        pipeline.py     ServerListing

    Cross-Cutting
        logging.py      structlog configuration
        settings.py     ServerViewSettings (pydantic-settings)

Data flow::

    records + FilterConfig + PinConfig + SortOrder
        → build_predicate (compile_query)
        → sort_and_filter
        → ServerListing.sorted_servers
"""

from serverview.core.coalesce import ChangeCoalescer
from serverview.core.errors import (
    ConfigError,
    ErrorCategory,
    InvalidSortOrderError,
    InvalidTermError,
    PreferenceStoreError,
    QueryError,
    RecordError,
    ServerViewError,
    StorageError,
)
from serverview.core.events import ChangeEmitter, Subscribable, SubscriptionHandle
from serverview.core.filters import FilterConfig, PinConfig, build_predicate, is_pinned
from serverview.core.ordering import (
    COLUMNS,
    DEFAULT_SORT_ORDER,
    SortDirection,
    SortOrder,
    build_comparator,
    sort_and_filter,
)
from serverview.core.pipeline import ServerListing
from serverview.core.preferences import (
    SORT_ORDER_KEY,
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PreferenceStore,
    load_sort_order,
    save_sort_order,
)
from serverview.core.query import (
    CategoryTerm,
    CompiledQuery,
    LiteralTerm,
    RegexTerm,
    compile_query,
    explain_query,
    parse_term,
    tokenize,
)
from serverview.core.records import (
    PING_UNKNOWN,
    Record,
    ServerRecord,
    category_value,
    sortable_value,
    strip_colors,
)

__all__ = [
    # errors
    "ServerViewError",
    "ErrorCategory",
    "QueryError",
    "InvalidTermError",
    "ConfigError",
    "InvalidSortOrderError",
    "RecordError",
    "StorageError",
    "PreferenceStoreError",
    # records
    "PING_UNKNOWN",
    "Record",
    "ServerRecord",
    "ChangeEmitter",
    "Subscribable",
    "SubscriptionHandle",
    "category_value",
    "sortable_value",
    "strip_colors",
    # query
    "CompiledQuery",
    "LiteralTerm",
    "RegexTerm",
    "CategoryTerm",
    "compile_query",
    "explain_query",
    "parse_term",
    "tokenize",
    # filters / ordering
    "FilterConfig",
    "PinConfig",
    "build_predicate",
    "is_pinned",
    "COLUMNS",
    "DEFAULT_SORT_ORDER",
    "SortDirection",
    "SortOrder",
    "build_comparator",
    "sort_and_filter",
    # recompute
    "ChangeCoalescer",
    "ServerListing",
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "SORT_ORDER_KEY",
    "load_sort_order",
    "save_sort_order",
]
