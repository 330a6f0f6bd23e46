"""Verify registry log handlers"""

import logging

from models import RequestStatus
from services.handler_context import HandlerContext
from services.role_registry_service import RoleRegistryService, role_from_hash
from services.verify_registry_service import VerifyRegistryService
from utils.event_envelope import evidences_of

logger = logging.getLogger(__name__)


def handle_request_approve(ctx: HandlerContext):
    VerifyRegistryService(ctx).add(ctx.param("sender"), ctx.param("evidence"))


def handle_approve(ctx: HandlerContext):
    VerifyRegistryService(ctx).approve(ctx.param("sender"), evidences_of(ctx.envelope))


def handle_request_remove(ctx: HandlerContext):
    VerifyRegistryService(ctx).request(RequestStatus.REMOVE, ctx.param("sender"), evidences_of(ctx.envelope))


def handle_remove(ctx: HandlerContext):
    VerifyRegistryService(ctx).remove(ctx.param("sender"), evidences_of(ctx.envelope))


def handle_request_ban(ctx: HandlerContext):
    VerifyRegistryService(ctx).request(RequestStatus.BAN, ctx.param("sender"), evidences_of(ctx.envelope))


def handle_ban(ctx: HandlerContext):
    VerifyRegistryService(ctx).ban(ctx.param("sender"), evidences_of(ctx.envelope))


def handle_role_granted(ctx: HandlerContext):
    role = role_from_hash(ctx.param("role"))
    RoleRegistryService(ctx).grant(role, ctx.param("account"), ctx.param("sender"))


def handle_role_revoked(ctx: HandlerContext):
    role = role_from_hash(ctx.param("role"))
    RoleRegistryService(ctx).revoke(role, ctx.param("account"), ctx.param("sender"))


VERIFY_HANDLERS = {
    "RequestApprove": handle_request_approve,
    "Approve": handle_approve,
    "RequestRemove": handle_request_remove,
    "Remove": handle_remove,
    "RequestBan": handle_request_ban,
    "Ban": handle_ban,
    "RoleGranted": handle_role_granted,
    "RoleRevoked": handle_role_revoked,
}
