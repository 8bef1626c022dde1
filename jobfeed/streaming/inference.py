"""Derive presentation and SEO fields from a cleaned feed item."""

import math
import re
import unicodedata
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jobfeed.utils.timestamps import format_timestamp, parse_feed_datetime

from .cleaning import strip_tags
from .mappings import estimate_salary, icon_for, lookup_province_domain

SUPPORTED_LANGUAGES = ("nl", "fr", "en")

LABELS: Mapping[str, Mapping[str, str]] = {
    "nl": {
        "estimate": "Geschat ",
        "part_time": "Deeltijds",
        "full_time": "Voltijds",
        "job": "Vacature",
        "at": " Bij ",
        "company": "bedrijf",
        "benefits": "Voordelen: ",
        "car": "Bedrijfswagen",
        "meal_vouchers": "Maaltijdcheques",
        "remote": "Thuiswerk",
        "flex_hours": "Flexibele uren",
        "salary": "Salaris: ",
        "skills": "Vaardigheden: ",
        "apply": "Solliciteer nu!",
    },
    "fr": {
        "estimate": "Estimé ",
        "part_time": "Temps partiel",
        "full_time": "Temps plein",
        "job": "Emploi",
        "at": " Chez ",
        "company": "entreprise",
        "benefits": "Avantages: ",
        "car": "Voiture de société",
        "meal_vouchers": "Chèques repas",
        "remote": "Télétravail",
        "flex_hours": "Heures flexibles",
        "salary": "Salaire: ",
        "skills": "Compétences: ",
        "apply": "Postulez maintenant!",
    },
    "en": {
        "estimate": "Est. ",
        "part_time": "Part-time",
        "full_time": "Full-time",
        "job": "Job",
        "at": " At ",
        "company": "company",
        "benefits": "Benefits: ",
        "car": "Company car",
        "meal_vouchers": "Meal vouchers",
        "remote": "Remote work",
        "flex_hours": "Flexible hours",
        "salary": "Salary: ",
        "skills": "Skills: ",
        "apply": "Apply now!",
    },
}

BENEFIT_PATTERNS: Mapping[str, "re.Pattern[str]"] = {
    "has_company_car": re.compile(r"bedrijfs(?:wagen|auto)|firmawagen|voiture de société|company car", re.I),
    "remote_work": re.compile(r"thuiswerk|télétravail|remote work|home office", re.I),
    "meal_vouchers": re.compile(r"maaltijdcheques|chèques repas|meal vouchers", re.I),
    "flexible_hours": re.compile(r"flexibele uren|heures flexibles|flexible hours", re.I),
}

SKILL_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("Excel", re.compile(r"\bexcel\b", re.I)),
    ("WinBooks", re.compile(r"\bwinbooks\b", re.I)),
)

TEXT_FIELDS = (
    "functiontitle",
    "description",
    "functiondescription",
    "offerdescription",
    "requirementsdescription",
    "companydescription",
)

UTM_SOURCE = "puntwork"


def detect_language(fields: Mapping[str, str]) -> str:
    code = (fields.get("languagecode") or "").strip().lower()[:2]
    return code if code in ("nl", "fr") else "en"


def slugify(value: str) -> str:
    """ASCII, lower-case, hyphen-separated slug."""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_value.lower())
    return slug.strip("-")


def parse_amount(value: Optional[str]) -> Optional[float]:
    """Parse a salary figure; zero, non-finite and unparsable values mean "not given"."""
    if not value:
        return None
    try:
        amount = float(value.replace(",", ".").replace(" ", ""))
    except ValueError:
        return None
    return amount if math.isfinite(amount) and amount > 0 else None


def _format_amount(value: float) -> str:
    return str(int(value)) if value == int(value) else f"{value:.2f}"


def build_salary_text(
    salary_from: Optional[float],
    salary_to: Optional[float],
    estimate: Optional[Tuple[int, int]],
    language: str,
) -> str:
    if salary_from and salary_to:
        return f"€{_format_amount(salary_from)} - €{_format_amount(salary_to)}"
    if salary_from:
        return f"€{_format_amount(salary_from)}"
    if estimate:
        low, high = estimate
        return f"{LABELS[language]['estimate']}€{low} - €{high}"
    return "€3000 - €4500"


def build_enhanced_title(title: str, city: str, province: str) -> str:
    enhanced = title
    if city:
        enhanced += f" in {city}"
    if province:
        enhanced += f", {province}"
    return enhanced.strip()


def tag_apply_link(apply_link: str, guid: str) -> str:
    if not apply_link:
        return ""
    separator = "&" if "?" in apply_link else "?"
    return f"{apply_link}{separator}utm_source={UTM_SOURCE}&utm_term={guid}"


def build_languages_html(fields: Mapping[str, str]) -> str:
    """``<ul><li>Dutch: Good (4/5)</li>...</ul>`` from language/level pairs."""
    entries = []
    for index in (1, 2, 3):
        suffix = "" if index == 1 else str(index)
        name = fields.get(f"language{suffix}", "")
        if not name:
            continue
        level = fields.get(f"languagelevel{suffix}", "")
        number, _, label = level.partition(" - ")
        entries.append(f"<li>{name}: {label.strip()} ({number.strip()}/5)</li>")
    return f"<ul>{''.join(entries)}</ul>" if entries else ""


def build_job_description(
    language: str,
    enhanced_title: str,
    fields: Mapping[str, str],
    benefits: Mapping[str, bool],
    salary_text: str,
    skills: List[str],
) -> str:
    """Short multilingual summary used as the record's meta description."""
    labels = LABELS[language]
    company = strip_tags(fields.get("companydescription", "")) or labels["company"]
    function = strip_tags(fields.get("functiondescription", ""))
    perks = [
        labels[label]
        for flag, label in (
            ("has_company_car", "car"),
            ("meal_vouchers", "meal_vouchers"),
            ("remote_work", "remote"),
            ("flexible_hours", "flex_hours"),
        )
        if benefits.get(flag)
    ]
    parts = [
        f"{labels['job']}: {enhanced_title}. {function}{labels['at']}{company}.",
        f"{labels['benefits']}{', '.join(perks)}." if perks else "",
        f"{labels['salary']}{salary_text}.",
        f"{labels['skills']}{', '.join(skills)}." if skills else "",
        labels["apply"],
    ]
    return re.sub(r"\s+", " ", " ".join(part for part in parts if part)).strip()


def build_job_schema(
    guid: str,
    enhanced_title: str,
    description: str,
    fields: Mapping[str, str],
    job_link: str,
    job_time: str,
    remote_work: bool,
    estimate: Optional[Tuple[int, int]],
) -> Dict[str, Any]:
    """schema.org ``JobPosting`` structured data."""
    posted = parse_feed_datetime(fields.get("pubdate"))
    valid_through = parse_feed_datetime(fields.get("validtill"))
    schema: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "JobPosting",
        "title": enhanced_title,
        "description": description,
        "datePosted": format_timestamp(posted) if posted else None,
        "validThrough": format_timestamp(valid_through) if valid_through else None,
        "hiringOrganization": {
            "@type": "Organization",
            "name": strip_tags(fields.get("company") or fields.get("companydescription", ""))
            or "Unknown",
        },
        "jobLocation": {
            "@type": "Place",
            "address": {
                "@type": "PostalAddress",
                "addressLocality": fields.get("city", ""),
                "addressRegion": fields.get("province", ""),
                "postalCode": fields.get("postalcode", ""),
                "addressCountry": "BE",
            },
        },
        "employmentType": job_time,
        "occupationalCategory": fields.get("functiongroup", ""),
        "url": job_link,
        "identifier": {"@type": "PropertyValue", "name": "GUID", "value": guid},
    }
    if remote_work:
        schema["jobLocationType"] = "TELECOMMUTE"
        schema["applicantLocationRequirements"] = {"@type": "Country", "name": "Belgium"}
    if estimate:
        low, high = estimate
        schema["baseSalary"] = {
            "@type": "MonetaryAmount",
            "currency": "EUR",
            "value": {
                "@type": "QuantitativeValue",
                "minValue": low,
                "maxValue": high,
                "unitText": "MONTH",
            },
        }
    return schema


def infer_item_details(
    fields: Mapping[str, str], guid: str, fallback_domain: str
) -> Dict[str, Any]:
    """
    Infer the derived fields of a record from its cleaned source fields.

    Args:
        fields: Cleaned item fields keyed by lower-cased element name
        guid: The item's GUID
        fallback_domain: Domain used when the province is unknown

    Returns:
        Keyword arguments for ``NormalizedRecord`` (all but identity,
        fingerprint and timestamps)
    """
    language = detect_language(fields)
    labels = LABELS[language]

    title = fields.get("functiontitle") or fields.get("title", "")
    city = fields.get("city", "")
    province = fields.get("province", "")
    function_group = fields.get("functiongroup", "")

    domain = lookup_province_domain(province, fallback_domain)
    enhanced_title = build_enhanced_title(title, city, province)
    slug = slugify(f"{enhanced_title}-{guid}")
    job_link = f"https://{domain}/job/{slug}"

    salary_from = parse_amount(fields.get("salaryfrom"))
    salary_to = parse_amount(fields.get("salaryto"))
    estimate = estimate_salary(function_group)
    salary_text = build_salary_text(salary_from, salary_to, estimate, language)

    all_text = " ".join(fields.get(name, "") for name in TEXT_FIELDS)
    benefits = {name: bool(pattern.search(all_text)) for name, pattern in BENEFIT_PATTERNS.items()}
    skills = [skill for skill, pattern in SKILL_PATTERNS if pattern.search(all_text)]

    part_time = fields.get("parttime", "").lower() == "true"
    job_time = labels["part_time"] if part_time else labels["full_time"]

    job_description = build_job_description(
        language, enhanced_title, fields, benefits, salary_text, skills
    )
    description = (
        fields.get("description")
        or fields.get("functiondescription")
        or fields.get("offerdescription", "")
    )

    return {
        "title": title,
        "enhanced_title": enhanced_title,
        "slug": slug,
        "description": description,
        "company": fields.get("company") or None,
        "function_group": function_group or None,
        "city": city or None,
        "postal_code": fields.get("postalcode") or None,
        "province": province or None,
        "domain": domain,
        "salary_from": salary_from,
        "salary_to": salary_to,
        "salary_text": salary_text,
        "job_link": job_link,
        "apply_link": tag_apply_link(fields.get("applylink", ""), guid) or None,
        "job_icon": f'<i class="fas {icon_for(function_group)}"></i>',
        "job_time": job_time,
        "job_description": job_description,
        "language": language,
        "skills": skills,
        "languages_html": build_languages_html(fields),
        "job_posting": build_job_schema(
            guid, enhanced_title, job_description, fields, job_link, job_time,
            benefits["remote_work"], estimate,
        ),
        **benefits,
    }
