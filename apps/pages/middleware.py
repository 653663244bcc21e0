from django.utils.cache import patch_vary_headers

from apps.pages.state import COLOR_SCHEME_HINT


class ColorSchemeHintMiddleware:
    """
    Ask browsers to send ``Sec-CH-Prefers-Color-Scheme`` on every request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        response["Accept-CH"] = COLOR_SCHEME_HINT
        response["Critical-CH"] = COLOR_SCHEME_HINT
        patch_vary_headers(response, (COLOR_SCHEME_HINT,))
        return response
