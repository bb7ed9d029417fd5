from functools import wraps

from booknest.utils import json_error

import logging

logger = logging.getLogger("booknest")


def api_login_required(view_func):
    """
    Like ``login_required`` but answers 401 JSON instead of redirecting to a login page.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error("Authentication required", status=401)
        return view_func(request, *args, **kwargs)
    return wrapper


def api_admin_required(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error("Authentication required", status=401)
        if not request.user.is_staff:
            logger.info(f"Non admin user {request.user.pk} tried to reach {request.path}")
            return json_error("Admin access required", status=403)
        return view_func(request, *args, **kwargs)
    return wrapper
