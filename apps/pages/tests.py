from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from apps.pages.state import SESSION_KEY, AppState
from apps.pages.utils import generate_styled_table

SALES_CSV = b"Region,Sales\nEast,100\nWest,200\n"


def make_upload(content=SALES_CSV, name="sales.csv", content_type="text/csv"):
    return SimpleUploadedFile(name, content, content_type=content_type)


class TestHomePage(TestCase):
    def upload(self, file, **kwargs):
        return self.client.post(reverse("home"), {"file": file}, **kwargs)

    def session_state(self):
        return self.client.session[SESSION_KEY]

    def test_home_page_renders_upload_form(self):
        response = self.client.get(reverse("home"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Upload your CSV file")
        self.assertContains(response, "InsightForge")

    def test_upload_shows_preview_types_and_suggestions(self):
        response = self.upload(make_upload(), follow=True)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "File uploaded successfully")
        self.assertContains(response, "Showing 2 of 2 rows")
        self.assertContains(response, "Region: categorical")
        self.assertContains(response, "Sales: numeric")

        content = response.content.decode()
        bar = content.index("Sales by Region")
        pie = content.index("Distribution of Sales across Region")
        self.assertLess(bar, pie)

        upload = self.session_state()["upload"]
        self.assertEqual(upload["headers"], ["Region", "Sales"])
        self.assertEqual(upload["total_row_count"], 2)

    def test_preview_is_limited_to_five_rows(self):
        content = b"n\n" + b"".join(b"%d\n" % i for i in range(7))

        response = self.upload(make_upload(content), follow=True)

        self.assertContains(response, "Showing 5 of 7 rows")
        self.assertEqual(len(self.session_state()["upload"]["preview"]), 5)

    def test_non_csv_upload_shows_inline_error(self):
        response = self.upload(
            make_upload(name="notes.txt", content_type="text/plain")
        )

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Please upload a CSV file")
        self.assertIsNone(self.session_state()["upload"])

    def test_parse_error_shows_inline_error(self):
        response = self.upload(make_upload(b"a,b\n1,2\n3\n"))

        self.assertContains(response, "Error parsing CSV")
        self.assertContains(response, "Too few fields")
        self.assertIsNone(self.session_state()["upload"])

    def test_failed_upload_discards_previous_one(self):
        self.upload(make_upload())
        self.upload(make_upload(b"a,b\n1,2,3\n"))

        self.assertIsNone(self.session_state()["upload"])

    def test_new_upload_replaces_previous_one(self):
        self.upload(make_upload())
        self.upload(make_upload(b"Height,Weight\n1,2\n", name="body.csv"))

        upload = self.session_state()["upload"]
        self.assertEqual(upload["file_name"], "body.csv")
        self.assertEqual(upload["suggestions"][0]["kind"], "scatter")

    def test_reset_clears_upload(self):
        self.upload(make_upload())

        response = self.client.post(reverse("reset-upload"))

        self.assertRedirects(response, f"{reverse('home')}?tab=upload")
        self.assertIsNone(self.session_state()["upload"])

    def test_visualize_tab_without_data(self):
        response = self.client.get(reverse("home"), {"tab": "visualize"})

        self.assertContains(response, "No Data to Visualize")

    def test_visualize_tab_lists_suggestions(self):
        self.upload(make_upload())

        response = self.client.get(reverse("home"), {"tab": "visualize"})

        self.assertContains(response, "Sales by Region")
        self.assertNotContains(response, "Data Preview")

    def test_dashboard_tab(self):
        response = self.client.get(reverse("home"), {"tab": "dashboard"})

        self.assertContains(response, "Dashboard Empty")
        self.assertEqual(self.session_state()["active_tab"], "dashboard")

    def test_unknown_tab_falls_back_to_upload(self):
        self.client.get(reverse("home"), {"tab": "settings"})

        self.assertEqual(self.session_state()["active_tab"], "upload")

    def test_header_names_are_escaped_in_preview(self):
        response = self.upload(make_upload(b"<b>x</b>\n1\n"), follow=True)

        self.assertContains(response, "&lt;b&gt;x&lt;/b&gt;")
        self.assertNotContains(response, "<b>x</b>", html=False)


class TestThemeToggle(TestCase):
    def test_toggle_flips_and_persists_dark_mode(self):
        self.client.post(reverse("toggle-theme"))
        self.assertTrue(self.client.session[SESSION_KEY]["dark_mode"])

        response = self.client.get(reverse("home"))
        self.assertContains(response, '<html lang="en" class="dark">', html=False)

        self.client.post(reverse("toggle-theme"))
        self.assertFalse(self.client.session[SESSION_KEY]["dark_mode"])

    def test_toggle_redirects_back(self):
        response = self.client.post(
            reverse("toggle-theme"), {"next": "/?tab=visualize"}
        )

        self.assertRedirects(response, "/?tab=visualize")

    def test_toggle_ignores_foreign_redirects(self):
        response = self.client.post(
            reverse("toggle-theme"), {"next": "https://example.com/"}
        )

        self.assertRedirects(response, reverse("home"), fetch_redirect_response=False)

    def test_initial_theme_follows_client_hint(self):
        response = self.client.get(
            reverse("home"), HTTP_SEC_CH_PREFERS_COLOR_SCHEME='"dark"'
        )

        self.assertTrue(response.context["app_state"].dark_mode)

    def test_light_theme_by_default(self):
        response = self.client.get(reverse("home"))

        self.assertFalse(response.context["app_state"].dark_mode)

    def test_responses_request_color_scheme_hint(self):
        response = self.client.get(reverse("home"))

        self.assertEqual(response["Accept-CH"], "Sec-CH-Prefers-Color-Scheme")
        self.assertEqual(response["Critical-CH"], "Sec-CH-Prefers-Color-Scheme")
        self.assertIn("Sec-CH-Prefers-Color-Scheme", response["Vary"])

    def test_hint_sent_after_first_visit_is_followed(self):
        first = self.client.get(reverse("home"))
        self.assertFalse(first.context["app_state"].dark_mode)

        second = self.client.get(
            reverse("home"), HTTP_SEC_CH_PREFERS_COLOR_SCHEME='"dark"'
        )

        self.assertTrue(second.context["app_state"].dark_mode)

    def test_toggle_overrides_hint(self):
        self.client.post(
            reverse("toggle-theme"), HTTP_SEC_CH_PREFERS_COLOR_SCHEME='"dark"'
        )

        response = self.client.get(
            reverse("home"), HTTP_SEC_CH_PREFERS_COLOR_SCHEME='"dark"'
        )

        self.assertFalse(response.context["app_state"].dark_mode)
        self.assertTrue(self.client.session[SESSION_KEY]["theme_chosen"])


class TestNotFound(TestCase):
    def test_unknown_url_renders_not_found_page(self):
        response = self.client.get("/no/such/page/")

        self.assertEqual(response.status_code, 404)
        self.assertContains(response, "Page Not Found", status_code=404)


class TestStyledTable(SimpleTestCase):
    def test_nulls_render_empty_and_long_values_truncate(self):
        table = generate_styled_table(
            ["name", "score"],
            [{"name": "x" * 30, "score": None}, {"name": "ok", "score": 3}],
        )

        self.assertIn('title="' + "x" * 30 + '"', table)
        self.assertIn("x" * 20 + "...", table)
        self.assertIn("<td class", table)
        self.assertNotIn("None", table)
        self.assertIn(">3<", table)

    def test_app_state_defaults(self):
        state = AppState()

        self.assertEqual(state.active_tab, "upload")
        self.assertFalse(state.dark_mode)
        self.assertFalse(state.theme_chosen)
        self.assertIsNone(state.upload)
