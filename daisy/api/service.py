"""
Service-to-service subscription endpoints.

Older integration surface kept for backends that create subscriptions on
behalf of users. Responses are returned as the full body, including
`data` and any metadata.
"""

from collections.abc import Mapping
from typing import Any, Union
import logging

from .base import HTTPClient
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


class ServiceSubscriptionsClient:
    """
    Client for `/plans/` listing and direct subscription creation.

    Example:
        >>> service = ServiceSubscriptionsClient(HTTPClient(Credentials("id", "secret")))
        >>> body = service.create_subscription("plan-1")
    """

    def __init__(self, http: HTTPClient):
        self.http = http

    def get_plans(self) -> Any:
        """List the manager's plans (full response body)."""
        return self.http.get("/plans/").data

    def create_subscription(self, plan: Union[Mapping, str]) -> Any:
        """
        Create a subscription to `plan`.

        Args:
            plan: Plan mapping with `id`, or the plan id

        Returns:
            Full response body

        Raises:
            ValidationError: If no plan id is given
        """
        plan_id = plan.get("id") if isinstance(plan, Mapping) else plan
        if not plan_id:
            raise ValidationError("Missing `plan` (plan mapping with `id`, or plan id)")

        logger.info(f"Creating subscription to plan {plan_id}")
        return self.http.post("/subscriptions/", json_data={"planId": plan_id}).data
