import logging

logger = logging.getLogger("auth")


def log_auth_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Log `auth.<action>` with the caller's ip, path and resolved member."""
    event = f"auth.{action}"
    context = {
        "event": event,
        "status": status,
        "ip": request.META.get("REMOTE_ADDR"),
        "path": getattr(request, "path", None),
    }
    if user is not None:
        context["user_id"] = getattr(user, "id", None)
        context["shop_admin"] = bool(getattr(user, "is_shop_admin", False))
    if extra:
        context.update(extra)
    logger.info(event, extra=context)
