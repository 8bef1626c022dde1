"""Tests for field cleaning, lookups and inference."""

import pytest

from jobfeed.streaming.cleaning import (
    clean_html,
    clean_item_fields,
    clean_text,
    clean_title,
    strip_tags,
)
from jobfeed.streaming.inference import (
    build_enhanced_title,
    build_languages_html,
    build_salary_text,
    detect_language,
    infer_item_details,
    parse_amount,
    slugify,
    tag_apply_link,
)
from jobfeed.streaming.mappings import (
    DEFAULT_ICON,
    estimate_salary,
    icon_for,
    lookup_province_domain,
    match_function_group,
)


class TestCleaning:
    def test_clean_text(self):
        assert clean_text("  A &amp; B\x01\n\n C  ") == "A & B C"
        assert clean_text(None) == ""

    def test_clean_html_removes_unsafe_markup(self):
        raw = (
            '<p style="color: red" onclick="x()">Hi&nbsp;there 😀</p>'
            "<script>alert(1)</script><iframe src='x'></iframe>"
        )

        assert clean_html(raw) == "<p>Hi there </p>"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Boekhouder (m/v/x)", "Boekhouder"),
            ("Comptable H/F/X", "Comptable"),
            ("Developer m/f", "Developer"),
            ("Manager", "Manager"),
        ],
    )
    def test_clean_title(self, raw, expected):
        assert clean_title(raw) == expected

    def test_clean_item_fields(self):
        cleaned = clean_item_fields({"title": "Chef (m/v/x)", "city": " Gent ", "description": "<b>x</b>"})

        assert cleaned["title"] == "Chef"
        assert cleaned["city"] == "Gent"
        assert cleaned["description"] == "<b>x</b>"
        assert cleaned["companydescription"] == ""

    def test_strip_tags(self):
        assert strip_tags("<p>Hello <b>world</b></p>") == "Hello world"


class TestMappings:
    def test_province_domain(self):
        assert lookup_province_domain(" Antwerpen ", "fallback.work") == "antwerpen.work"
        assert lookup_province_domain("LIÈGE", "fallback.work") == "liege.work"
        assert lookup_province_domain("Atlantis", "fallback.work") == "fallback.work"
        assert lookup_province_domain(None, "fallback.work") == "fallback.work"

    def test_function_group_last_match_wins(self):
        assert match_function_group("Bank & Finance", {"Bank": 1, "Finance": 2}) == "Finance"
        assert match_function_group("", {"Bank": 1}) is None

    def test_estimate_salary(self):
        assert estimate_salary("IT & Telecommunicatie") == (4000, 6000)
        assert estimate_salary("Underwater basket weaving") is None

    def test_icon_for(self):
        assert icon_for("Customer Care") == "fa-headset"
        assert icon_for(None) == DEFAULT_ICON


class TestInference:
    def test_detect_language(self):
        assert detect_language({"languagecode": "NL-be"}) == "nl"
        assert detect_language({"languagecode": "fr"}) == "fr"
        assert detect_language({"languagecode": "de"}) == "en"
        assert detect_language({}) == "en"

    def test_slugify(self):
        assert slugify("Café Déli & Co!") == "cafe-deli-co"

    def test_parse_amount(self):
        assert parse_amount("3500,50") == 3500.5
        assert parse_amount("0") is None
        assert parse_amount("n/a") is None
        assert parse_amount(None) is None

    @pytest.mark.parametrize("value", ["inf", "Infinity", "-inf", "nan", "1e400"])
    def test_parse_amount_non_finite(self, value):
        assert parse_amount(value) is None

    def test_salary_text(self):
        assert build_salary_text(3000.0, 4000.0, None, "en") == "€3000 - €4000"
        assert build_salary_text(3000.5, None, None, "en") == "€3000.50"
        assert build_salary_text(None, None, (3500, 5000), "nl") == "Geschat €3500 - €5000"
        assert build_salary_text(None, None, None, "fr") == "€3000 - €4500"

    def test_enhanced_title(self):
        assert build_enhanced_title("Chef", "Gent", "Oost-Vlaanderen") == "Chef in Gent, Oost-Vlaanderen"
        assert build_enhanced_title("Chef", "", "") == "Chef"

    def test_tag_apply_link(self):
        assert tag_apply_link("https://a/x", "G1") == "https://a/x?utm_source=puntwork&utm_term=G1"
        assert tag_apply_link("https://a/x?y=1", "G1").endswith("?y=1&utm_source=puntwork&utm_term=G1")
        assert tag_apply_link("", "G1") == ""

    def test_languages_html(self):
        fields = {"language": "Dutch", "languagelevel": "4 - Good", "language3": "English", "languagelevel3": "5 - Native"}

        assert build_languages_html(fields) == (
            "<ul><li>Dutch: Good (4/5)</li><li>English: Native (5/5)</li></ul>"
        )
        assert build_languages_html({}) == ""

    def test_infer_item_details(self):
        fields = clean_item_fields(
            {
                "functiontitle": "Boekhouder",
                "city": "Gent",
                "province": "Oost-Vlaanderen",
                "functiongroup": "IT & Telecommunicatie",
                "languagecode": "nl",
                "parttime": "true",
                "functiondescription": "Bedrijfswagen en maaltijdcheques. Kennis van WinBooks.",
            }
        )

        details = infer_item_details(fields, "G1", "belgiumjobs.work")

        assert details["language"] == "nl"
        assert details["job_time"] == "Deeltijds"
        assert details["has_company_car"] is True
        assert details["meal_vouchers"] is True
        assert details["remote_work"] is False
        assert details["skills"] == ["WinBooks"]
        assert details["salary_text"] == "Geschat €4000 - €6000"
        assert details["job_icon"] == '<i class="fas fa-network-wired"></i>'
        assert details["job_posting"]["@type"] == "JobPosting"
        assert details["job_posting"]["baseSalary"]["value"]["minValue"] == 4000
        assert details["job_posting"]["jobLocation"]["address"]["addressCountry"] == "BE"
        assert details["slug"] == "boekhouder-in-gent-oost-vlaanderen-g1"
