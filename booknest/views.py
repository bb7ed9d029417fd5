from django.http import JsonResponse


def health(request):
    return JsonResponse({"status": "ok"})


def not_found(request, exception=None):
    return JsonResponse({"error": "Not found"}, status=404)
