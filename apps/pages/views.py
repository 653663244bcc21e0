import logging

from django.core.exceptions import ValidationError
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.generic import TemplateView, View

from apps.pages.forms import DatasetUploadForm
from apps.pages.state import AppState, Tab
from apps.pages.utils import column_type_rows, generate_styled_table
from apps.visualization.exceptions import IngestError
from apps.visualization.services.visualizer_service import VisualizationService

logger = logging.getLogger(__name__)


def _home_url(tab: str = Tab.UPLOAD.value) -> str:
    return f"{reverse('home')}?tab={tab}"


class HomePageView(TemplateView):
    template_name = "pages/index.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        state = context["app_state"]
        upload = state.upload

        context.update(
            {
                "tabs": Tab.choices,
                "upload": upload,
            }
        )

        if upload:
            context.update(
                {
                    "head_html": generate_styled_table(
                        upload["headers"], upload["preview"]
                    ),
                    "preview_count": len(upload["preview"]),
                    "file_size_kb": f"{upload['file_size'] / 1024:.2f}",
                    "column_types": column_type_rows(upload),
                }
            )
        return context

    def get(self, request, *args, **kwargs):
        state = AppState.load(request)
        state.select_tab(request.GET.get("tab"))
        state.save(request)

        return self.render_to_response(
            self.get_context_data(app_state=state, form=DatasetUploadForm())
        )

    def post(self, request, *args, **kwargs):
        state = AppState.load(request)
        state.select_tab(Tab.UPLOAD.value)

        form = DatasetUploadForm(request.POST, request.FILES)

        if form.is_valid():
            try:
                result = VisualizationService().analyze(form.cleaned_data["file"])
            except IngestError as exc:
                form.add_error("file", ValidationError(exc.message, code=exc.code))
            else:
                state.replace_upload(result)
                state.save(request)
                return redirect(_home_url())

        # A failed attempt discards whatever was shown before.
        state.reset_upload()
        state.save(request)

        return self.render_to_response(
            self.get_context_data(app_state=state, form=form)
        )


class ResetUploadView(View):
    def post(self, request, *args, **kwargs):
        state = AppState.load(request)
        state.reset_upload()
        state.save(request)
        return redirect(_home_url())


class ThemeToggleView(View):
    def post(self, request, *args, **kwargs):
        state = AppState.load(request)
        state.toggle_dark_mode()
        state.save(request)
        logger.debug("Dark mode set to %s", state.dark_mode)

        next_url = request.POST.get("next")
        if next_url and url_has_allowed_host_and_scheme(
            next_url, allowed_hosts={request.get_host()}
        ):
            return redirect(next_url)
        return redirect("home")


def page_not_found(request, exception):
    return render(request, "pages/404.html", status=404)
