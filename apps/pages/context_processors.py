from apps.pages.state import AppState


def app_state(request):
    if not hasattr(request, "session"):
        return {}
    return {"app_state": AppState.load(request)}
