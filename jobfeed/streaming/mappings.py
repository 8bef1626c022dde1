"""Static lookup tables used to infer record fields.

Tables are immutable and loaded once at import; the lookup functions are
pure and safe to call from any thread.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

# Lower-cased province name (nl/fr/en spellings) -> regional job domain
PROVINCE_DOMAINS: Mapping[str, str] = MappingProxyType(
    {
        "antwerp": "antwerpen.work",
        "antwerpen": "antwerpen.work",
        "anvers": "antwerpen.work",
        "brabant flamand": "vlaams-brabant.work",
        "vlaams-brabant": "vlaams-brabant.work",
        "brabant wallon": "brabant-wallon.work",
        "brabant-wallon": "brabant-wallon.work",
        "waals-brabant": "brabant-wallon.work",
        "walloon brabant": "brabant-wallon.work",
        "brussels capital-region": "bruxelles.work",
        "brussels hoofdstedelijk gewest": "bruxelles.work",
        "bruxelles": "bruxelles.work",
        "brussel": "bruxelles.work",
        "east flanders": "oost-vlaanderen.work",
        "flandre orientale": "oost-vlaanderen.work",
        "oost-vlaanderen": "oost-vlaanderen.work",
        "flandre occidentale": "west-vlaanderen.work",
        "west-vlaanderen": "west-vlaanderen.work",
        "hainaut": "hainaut.work",
        "henegouwen": "hainaut.work",
        "liège": "liege.work",
        "luik": "liege.work",
        "limbourg": "limburg.work",
        "limburg": "limburg.work",
        "luxembourg": "luxembourgjobs.work",
        "namen": "namur.work",
        "namur": "namur.work",
        "wallonie": "wallonie.work",
        "wallonia": "wallonie.work",
        "vlaanderen": "vlaanderen.work",
        "flanders": "vlaanderen.work",
        "flandre": "vlaanderen.work",
    }
)

# Function group -> (low, high) monthly gross estimate in EUR
SALARY_ESTIMATES: Mapping[str, Tuple[int, int]] = MappingProxyType(
    {
        "Accounting": (3500, 5000),
        "Comptabilité": (3500, 5000),
        "Administratie & Secretariaat": (2800, 4200),
        "Administration & Secrétariat": (2800, 4200),
        "Assurances": (3200, 4800),
        "Insurance": (3200, 4800),
        "Bank": (3400, 5200),
        "Banque": (3400, 5200),
        "Bouw": (3000, 4500),
        "Construction": (3000, 4500),
        "Contrôle Qualité, Prévention & Environnement": (3300, 4800),
        "Q&A, Milieu & Preventie": (3300, 4800),
        "Customer Care": (2700, 4000),
        "Engineering": (3800, 5500),
        "Finance": (3600, 5200),
        "Gezondheidszorg, Sociale & Medische Diensten": (3200, 4700),
        "Santé, Service Social & Médical": (3200, 4700),
        "Grafisch & Architectuur": (3000, 4500),
        "Graphisme & Architecture": (3000, 4500),
        "Horeca, Évènements & Tourisme": (2500, 3800),
        "Horeca, Events & Toerisme": (2500, 3800),
        "Human Resources": (3400, 5000),
        "Ressources Humaines": (3400, 5000),
        "Industrie": (3300, 4800),
        "Industry": (3300, 4800),
        "Informatique & Télécommunication": (4000, 6000),
        "IT & Telecommunicatie": (4000, 6000),
        "Juridique": (3800, 5500),
        "Juridisch": (3800, 5500),
        "Management": (4500, 6500),
        "Maritiem": (3500, 5000),
        "Maritime": (3500, 5000),
        "Onderwijs": (3000, 4500),
        "R&D, Science & Recherche Scientifique": (3800, 5500),
        "R&D, Wetenschap & Wetenschappelijk Onderzoek": (3800, 5500),
        "Sales & Marketing": (3200, 4800),
        "Ventes & Marketing": (3200, 4800),
        "Technics": (3500, 5000),
        "Techniek": (3500, 5000),
        "Technique": (3500, 5000),
        "Textiel": (2800, 4200),
        "Textile": (2800, 4200),
        "Transport, Logistics & Purchase": (3000, 4500),
        "Transport, Logistiek & Aankoop": (3000, 4500),
        "Transport, Logistique & Achat": (3000, 4500),
    }
)

DEFAULT_SALARY_RANGE = (3000, 4500)

ICONS: Mapping[str, str] = MappingProxyType(
    {
        "Accounting": "fa-calculator-alt",
        "Comptabilité": "fa-file-invoice-dollar",
        "Administratie & Secretariaat": "fa-file-signature",
        "Administration & Secrétariat": "fa-file-signature",
        "Assurances": "fa-shield-check",
        "Insurance": "fa-shield-check",
        "Bank": "fa-piggy-bank",
        "Banque": "fa-piggy-bank",
        "Bouw": "fa-tools",
        "Construction": "fa-hard-hat",
        "Contrôle Qualité, Prévention & Environnement": "fa-search-dollar",
        "Q&A, Milieu & Preventie": "fa-search-dollar",
        "Customer Care": "fa-headset",
        "Engineering": "fa-drafting-compass",
        "Finance": "fa-chart-line",
        "Gezondheidszorg, Sociale & Medische Diensten": "fa-stethoscope",
        "Santé, Service Social & Médical": "fa-stethoscope",
        "Grafisch & Architectuur": "fa-palette",
        "Graphisme & Architecture": "fa-palette",
        "Horeca, Évènements & Tourisme": "fa-concierge-bell",
        "Horeca, Events & Toerisme": "fa-concierge-bell",
        "Human Resources": "fa-user-tie",
        "Ressources Humaines": "fa-user-tie",
        "Industrie": "fa-industry",
        "Industry": "fa-industry",
        "Informatique & Télécommunication": "fa-network-wired",
        "IT & Telecommunicatie": "fa-network-wired",
        "Juridique": "fa-balance-scale",
        "Juridisch": "fa-balance-scale",
        "Management": "fa-users-cog",
        "Maritiem": "fa-anchor",
        "Maritime": "fa-anchor",
        "Onderwijs": "fa-chalkboard-teacher",
        "R&D, Science & Recherche Scientifique": "fa-microscope",
        "R&D, Wetenschap & Wetenschappelijk Onderzoek": "fa-microscope",
        "Sales & Marketing": "fa-handshake",
        "Ventes & Marketing": "fa-handshake",
        "Technics": "fa-wrench",
        "Techniek": "fa-wrench",
        "Technique": "fa-wrench",
        "Textiel": "fa-tshirt",
        "Textile": "fa-tshirt",
        "Transport, Logistics & Purchase": "fa-shipping-fast",
        "Transport, Logistiek & Aankoop": "fa-shipping-fast",
        "Transport, Logistique & Achat": "fa-shipping-fast",
    }
)

DEFAULT_ICON = "fa-briefcase"


def normalize_province(province: Optional[str]) -> str:
    return (province or "").strip().lower()


def lookup_province_domain(province: Optional[str], fallback_domain: str) -> str:
    """Map a free-text province to its job domain, or ``fallback_domain``."""
    return PROVINCE_DOMAINS.get(normalize_province(province), fallback_domain)


def match_function_group(function_group: Optional[str], table: Mapping[str, object]) -> Optional[str]:
    """Return the table key contained in ``function_group``.

    Matching is a case-insensitive substring test; when several keys match,
    the one listed last wins.
    """
    haystack = (function_group or "").strip().lower()
    if not haystack:
        return None
    matched = None
    for key in table:
        if key.lower() in haystack:
            matched = key
    return matched


def estimate_salary(function_group: Optional[str]) -> Optional[Tuple[int, int]]:
    """Estimated (low, high) salary for a function group, if known."""
    key = match_function_group(function_group, SALARY_ESTIMATES)
    return SALARY_ESTIMATES[key] if key else None


def icon_for(function_group: Optional[str]) -> str:
    """Font Awesome icon class for a function group."""
    key = match_function_group(function_group, ICONS)
    return ICONS[key] if key else DEFAULT_ICON
