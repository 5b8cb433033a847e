"""Internal constants shared across the library."""

DEFAULT_ENDPOINT = "http://localhost:4000/graphql"
DEFAULT_QUERY_NAME = "books"
USER_AGENT = "pybookvault"

# Temporary ids look like ``tmp-<instance prefix>-<counter>``.
TEMP_ID_PREFIX = "tmp"


def is_temp_id(value: str) -> bool:
    """Return ``True`` when *value* was minted locally for an unconfirmed insert."""
    return value.startswith(f"{TEMP_ID_PREFIX}-")
