from django.contrib.auth import login, logout
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import api_login_required
from accounts.forms import RegisterForm, CustomAuthenticationForm
from accounts.utils import serialize_user
from booknest.utils import parse_json_body, json_error, InvalidJSONBody

import logging

logger = logging.getLogger("booknest")


@require_GET
def csrf_token(request):
    return JsonResponse({"csrf_token": get_token(request)})


@require_POST
def register(request):
    try:
        post_data = parse_json_body(request)
    except InvalidJSONBody as e:
        return json_error(str(e))

    form = RegisterForm(data={
        "name": post_data.get("name"),
        "email": post_data.get("email"),
        "password1": post_data.get("password"),
        "password2": post_data.get("confirm_password"),
    })

    if not form.is_valid():
        logger.error(form.errors)
        return json_error("Validation error", status=400, errors=dict(form.errors))

    user = form.save()
    login(request, user, backend='accounts.backends.EmailBackend')

    logger.info(f"Registered user {user.pk}")

    return JsonResponse(serialize_user(user), status=201)


@require_POST
def login_view(request):
    try:
        post_data = parse_json_body(request)
    except InvalidJSONBody as e:
        return json_error(str(e))

    form = CustomAuthenticationForm(request, data={
        "username": post_data.get("email") or post_data.get("username"),
        "password": post_data.get("password"),
    })

    if not form.is_valid():
        logger.info(f"Failed login attempt for {post_data.get('email')}")
        return json_error("Invalid email or password", status=401, errors=dict(form.errors))

    user = form.get_user()
    login(request, user)

    return JsonResponse(serialize_user(user))


@require_POST
def logout_view(request):
    # flushes the session, verified books included
    logout(request)
    return JsonResponse({"message": "Logged out successfully"})


@require_GET
@api_login_required
def me(request):
    return JsonResponse(serialize_user(request.user))
