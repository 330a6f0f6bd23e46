"""Notice board log handlers"""

from services.handler_context import HandlerContext
from services.notice_service import record_notice


def handle_new_notice(ctx: HandlerContext):
    record_notice(ctx, ctx.param("sender"), ctx.param("subject"), ctx.param("data"))


NOTICE_BOARD_HANDLERS = {
    "NewNotice": handle_new_notice,
}
