from django.http import JsonResponse

def error_404(request, exception):
    return JsonResponse({"error": "Not found"}, status=404)

def error_500(request):
    return JsonResponse({"error": "Internal server error"}, status=500)
