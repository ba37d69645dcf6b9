import logging
from datetime import date

import holidays


logger = logging.getLogger(__name__)

COUNTRY_CODES = {
    "United States": "US",
    "USA": "US",
    "United Kingdom": "GB",
    "UK": "GB",
    "Canada": "CA",
    "Australia": "AU",
    "Germany": "DE",
    "France": "FR",
    "Italy": "IT",
    "Spain": "ES",
    "India": "IN",
    "China": "CN",
    "Japan": "JP",
    "Brazil": "BR",
    "Mexico": "MX",
    "South Africa": "ZA",
    "New Zealand": "NZ",
    "Ireland": "IE",
    "Netherlands": "NL",
    "Belgium": "BE",
    "Switzerland": "CH",
    "Austria": "AT",
    "Sweden": "SE",
    "Norway": "NO",
    "Denmark": "DK",
    "Finland": "FI",
    "Poland": "PL",
    "Portugal": "PT",
    "Greece": "GR",
    "Turkey": "TR",
    "Russia": "RU",
    "South Korea": "KR",
    "Singapore": "SG",
    "Malaysia": "MY",
    "Thailand": "TH",
    "Indonesia": "ID",
    "Philippines": "PH",
    "Vietnam": "VN",
    "Argentina": "AR",
    "Chile": "CL",
    "Colombia": "CO",
    "Peru": "PE",
    "Venezuela": "VE",
    "Egypt": "EG",
    "Saudi Arabia": "SA",
    "United Arab Emirates": "AE",
    "UAE": "AE",
    "Israel": "IL",
    "Pakistan": "PK",
    "Bangladesh": "BD",
    "Sri Lanka": "LK",
    "Nepal": "NP",
    "Myanmar": "MM",
    "Cambodia": "KH",
    "Laos": "LA",
}


def country_code(country: str | None) -> str | None:
    if not country:
        return None
    name = country.strip()
    return COUNTRY_CODES.get(name, name.upper())


def holidays_for_country(country: str | None, year: int) -> list[dict]:
    """Public holidays for ``year`` and ``year + 1`` as plain calendar dates.

    Dates are rendered as ``YYYY-MM-DD`` strings so that clients never shift
    them across a day boundary when converting between timezones. Countries
    the holiday table does not know yield an empty list.
    """
    code = country_code(country)
    if not code:
        return []
    try:
        table = holidays.country_holidays(code, years=[year, year + 1])
    except NotImplementedError:
        logger.warning("No holiday calendar for country %r", country)
        return []

    items: list[tuple[date, str]] = sorted(table.items())
    return [{"date": day.isoformat(), "name": name} for day, name in items]
