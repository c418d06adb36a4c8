"""Tests for the GraphQL client."""

import orjson
import pytest

from daisy.api.graphql import GraphQLClient
from daisy.exceptions import APIError, GraphQLError, ValidationError

from .conftest import make_response


@pytest.fixture
def gql(http):
    return GraphQLClient(http)


class TestGraphQLClient:
    """Test query/mutation handling."""

    def test_query_returns_data(self, gql, mock_session):
        mock_session.request.return_value = make_response(body={"data": {"me": {"id": "1"}}})

        assert gql.query("query { me { id } }") == {"me": {"id": "1"}}

        kwargs = mock_session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://sdk.test/graphql"
        assert orjson.loads(kwargs["data"]) == {"query": "query { me { id } }", "variables": None}

    def test_mutation_sent_as_query(self, gql, mock_session):
        mock_session.request.return_value = make_response(body={"data": {"ok": True}})

        gql.mutation("mutation ($id: ID!) { archive(id: $id) }", {"id": "7"})

        body = orjson.loads(mock_session.request.call_args.kwargs["data"])
        assert body["query"].startswith("mutation")
        assert body["variables"] == {"id": "7"}

    def test_mutation_key_rejected(self, gql, mock_session):
        with pytest.raises(ValidationError):
            gql.graphql({"mutation": "mutation { x }"})
        assert mock_session.request.call_count == 0

    def test_first_error_raised(self, gql, mock_session):
        mock_session.request.return_value = make_response(body={
            "errors": [
                {
                    "message": "Not allowed",
                    "locations": [{"line": 1, "column": 3}],
                    "path": ["me"],
                    "extensions": {"code": "FORBIDDEN"},
                },
                {"message": "Second error"},
            ],
            "data": {"me": None},
        })

        with pytest.raises(GraphQLError) as exc_info:
            gql.query("query { me { id } }")

        error = exc_info.value
        assert str(error) == "Not allowed"
        assert error.locations == [{"line": 1, "column": 3}]
        assert error.path == ["me"]
        assert error.extensions == {"code": "FORBIDDEN"}
        assert error.data == {"me": None}

    @pytest.mark.parametrize("content_type,raw", [
        ("text/html", b"<html>maintenance</html>"),
        ("application/json", b"[1, 2]"),
    ])
    def test_non_object_body(self, gql, mock_session, content_type, raw):
        mock_session.request.return_value = make_response(raw=raw, content_type=content_type)

        with pytest.raises(APIError) as exc_info:
            gql.query("query { me { id } }")

        assert exc_info.value.status_code == 200
        assert not isinstance(exc_info.value, GraphQLError)
