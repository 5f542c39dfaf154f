"""Data client operation names and the families scoping rules act on."""

from enum import Enum


class Operation(str, Enum):
    """Operations exposed by every model delegate of the data client."""

    FIND_MANY = "find_many"
    FIND_FIRST = "find_first"
    FIND_FIRST_OR_RAISE = "find_first_or_raise"
    FIND_UNIQUE = "find_unique"
    FIND_UNIQUE_OR_RAISE = "find_unique_or_raise"
    COUNT = "count"
    AGGREGATE = "aggregate"
    GROUP_BY = "group_by"
    CREATE = "create"
    CREATE_MANY = "create_many"
    UPDATE = "update"
    UPDATE_MANY = "update_many"
    DELETE = "delete"
    DELETE_MANY = "delete_many"
    UPSERT = "upsert"


# Operations whose "where" may match any number of rows.
FILTERED_OPERATIONS = frozenset(
    {
        Operation.FIND_MANY,
        Operation.FIND_FIRST,
        Operation.FIND_FIRST_OR_RAISE,
        Operation.COUNT,
        Operation.AGGREGATE,
        Operation.GROUP_BY,
        Operation.UPDATE_MANY,
        Operation.DELETE_MANY,
    }
)

# Operations whose "where" identifies a single row.
UNIQUE_OPERATIONS = frozenset(
    {
        Operation.FIND_UNIQUE,
        Operation.FIND_UNIQUE_OR_RAISE,
        Operation.UPDATE,
        Operation.DELETE,
    }
)
