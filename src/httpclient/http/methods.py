"""
HTTP request methods supported by the client.
"""

from enum import Enum
from typing import Union


class HTTPMethod(str, Enum):
    """
    The closed set of verbs the client can send.

    Because it extends str, a member compares equal to its wire token:

        >>> HTTPMethod.GET == "GET"
        True
        >>> str(HTTPMethod.DELETE)
        'DELETE'
    """

    GET = "GET"          # Retrieve resource
    POST = "POST"        # Submit data
    PUT = "PUT"          # Replace resource
    DELETE = "DELETE"    # Delete resource

    def __str__(self) -> str:
        return self.value

    @property
    def allows_body(self) -> bool:
        """True for verbs whose request carries raw_data (POST, PUT)."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT)

    @classmethod
    def from_value(cls, value: Union["HTTPMethod", str]) -> "HTTPMethod":
        """
        Coerce a member or a case-insensitive verb string to a member.

        Raises:
            ValueError: If the verb is not one of GET, POST, PUT, DELETE.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from None
