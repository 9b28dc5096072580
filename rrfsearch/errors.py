import traceback
from typing import Any

from rrfsearch.constants import DISTANCE_METHODS


class SearchError(Exception):
    """Base for every failure the search endpoint reports to callers.

    `code` names the error kind in the response body, `status_code` is the HTTP
    status it maps to.
    """

    code = "UnexpectedFailure"
    status_code = 500

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def extra(self) -> dict[str, Any]:
        return {}

    def to_dict(self, debug: bool = False) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code, **self.extra()}
        if debug and self.cause is not None:
            body["details"] = str(self.cause)
            body["stack"] = "".join(traceback.format_exception(self.cause))
        return body


class MissingQuery(SearchError):
    code = "MissingQuery"
    status_code = 400

    def __init__(self):
        super().__init__("Query parameter is required")


class InvalidDistanceMethod(SearchError):
    code = "InvalidDistanceMethod"
    status_code = 400

    def __init__(self, method: Any):
        super().__init__(
            f"Invalid distance method: {method}. Supported methods are: {', '.join(DISTANCE_METHODS)}"
        )
        self.method = method

    def extra(self) -> dict[str, Any]:
        return {"supported_methods": list(DISTANCE_METHODS)}


class InvalidFilter(SearchError):
    code = "InvalidFilter"
    status_code = 400

    def __init__(self, reason: str | None = None):
        message = "Invalid filter schema. Please check the filter structure and operators."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.reason = reason


class InvalidRequest(SearchError):
    code = "InvalidRequest"
    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def extra(self) -> dict[str, Any]:
        return {"errors": self.errors} if self.errors else {}


class QueryEngineFailure(SearchError):
    """A collaborator (embedding provider or query engine) failed.

    Carries both filter representations so callers can tell whether the
    canonical form is what the engine rejected.
    """

    code = "QueryEngineFailure"
    status_code = 500

    def __init__(
        self,
        message: str,
        original_filter: Any = None,
        transformed_filter: Any = None,
        stage: str = "query_engine",
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.original_filter = original_filter
        self.transformed_filter = transformed_filter
        self.stage = stage

    def extra(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "debug_info": {
                "original_filter": self.original_filter,
                "transformed_filter": self.transformed_filter,
            },
        }


class UnexpectedFailure(SearchError):
    def __init__(self, cause: BaseException | None = None):
        super().__init__("Internal server error", cause=cause)


class CollaboratorError(Exception):
    """Raised by embedding/query-engine clients; wrapped into QueryEngineFailure."""
