from django import forms
from django.conf import settings

from apps.visualization.constants import MAX_UPLOAD_SIZE
from apps.visualization.exceptions import IngestError
from apps.visualization.services.loader import DatasetLoader


class DatasetUploadForm(forms.Form):
    file = forms.FileField()

    def __init__(self, *args, **kwargs):
        super(DatasetUploadForm, self).__init__(*args, **kwargs)
        self.fields["file"].widget.attrs.update(
            {
                "class": "block w-full text-sm border border-gray-300 p-2 rounded mb-4",
                "accept": ".csv,text/csv",
            }
        )
        self.fields["file"].label = "Choose File"

    def clean_file(self):
        file = self.cleaned_data["file"]
        loader = DatasetLoader(
            max_upload_size=getattr(settings, "CSV_MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE)
        )
        try:
            loader.validate(file)
        except IngestError as exc:
            raise forms.ValidationError(exc.message, code=exc.code)
        return file
