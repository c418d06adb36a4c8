"""
GraphQL client for the Daisy API.

Queries and mutations are both sent as `{query, variables}` to
`POST /graphql`. Only the first entry of a GraphQL `errors` array is raised.
"""

from collections.abc import Mapping
from typing import Optional, Any, Dict
import logging

from .base import HTTPClient
from ..exceptions import APIError, GraphQLError, ValidationError

logger = logging.getLogger(__name__)


class GraphQLClient:
    """
    Thin GraphQL wrapper over an HTTPClient.

    Build the HTTPClient with `base_url=settings.graphql_url`.

    Example:
        >>> gql = GraphQLClient(HTTPClient(creds, base_url=settings.graphql_url))
        >>> gql.query("query { me { id } }")
    """

    def __init__(self, http: HTTPClient):
        self.http = http

    def query(self, query: str, variables: Optional[Mapping[str, Any]] = None) -> Any:
        return self.graphql({"query": query, "variables": variables})

    def mutation(self, query: str, variables: Optional[Mapping[str, Any]] = None) -> Any:
        """Mutations are sent in the `query` field, like queries."""
        return self.graphql({"query": query, "variables": variables})

    def graphql(self, request: Mapping[str, Any]) -> Any:
        """
        Execute a GraphQL request.

        Args:
            request: `{"query": ..., "variables": ...}`

        Returns:
            The `data` member of the GraphQL response

        Raises:
            ValidationError: If the request carries a `mutation` key
            GraphQLError: If the response contains `errors`
            APIError: If the response body is not a JSON object
        """
        if "mutation" in request:
            raise ValidationError(
                "Argument `mutation` does not exist, use `query` even for GraphQL mutations"
            )

        response = self.http.post("/graphql", json_data=dict(request))
        body: Dict[str, Any] = response.data or {}
        if not isinstance(body, Mapping):
            raise APIError(
                "GraphQL endpoint returned a non-JSON body",
                status_code=response.status,
                response=body,
            )

        errors = body.get("errors")
        if errors:
            error = errors[0]
            logger.debug(f"GraphQL error ({len(errors)} total): {error.get('message')}")
            raise GraphQLError(
                error.get("message", "GraphQL error"),
                locations=error.get("locations"),
                path=error.get("path"),
                extensions=error.get("extensions"),
                data=body.get("data"),
            )

        return body.get("data")
