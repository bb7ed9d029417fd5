import json
import logging

from django.http import JsonResponse

logger = logging.getLogger("booknest")


class InvalidJSONBody(Exception):
    pass


def parse_json_body(request):
    """
    Decode the request body as a JSON object. An empty body decodes to ``{}``.
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(e)
        raise InvalidJSONBody("Invalid JSON") from e

    if not isinstance(data, dict):
        raise InvalidJSONBody("JSON body must be an object")

    return data


def json_error(message, status=400, **extra):
    payload = {"error": message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def pydantic_errors(exc):
    # "ctx" can hold exception instances that are not JSON serialisable
    return [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
