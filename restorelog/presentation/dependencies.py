"""Request-scoped access to the objects built at application startup."""

from fastapi import Depends, Request

from ..application.executor import MutationExecutor
from ..application.log_view import LogViewController
from ..application.resolver import IdentifierResolver
from ..infrastructure.shopify.client import AdminApiClient


def get_admin_client(request: Request) -> AdminApiClient:
    return request.app.state.admin_client


def get_resolver(
    client: AdminApiClient = Depends(get_admin_client),
) -> IdentifierResolver:
    return IdentifierResolver.for_client(client)


def get_executor(
    client: AdminApiClient = Depends(get_admin_client),
) -> MutationExecutor:
    return MutationExecutor.for_client(client)


def get_log_view(request: Request) -> LogViewController:
    return request.app.state.log_view
