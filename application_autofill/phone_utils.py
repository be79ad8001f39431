"""
Dial code lookups used to resolve phone country-code selectors.
"""

import re
from typing import Dict, Optional, Sequence

# dial code -> (country name, ISO 3166 alpha-2)
COUNTRY_CODE_MAP: Dict[str, Dict[str, str]] = {
    '+1': {'name': 'United States', 'iso': 'US'},
    '+7': {'name': 'Russia', 'iso': 'RU'},
    '+20': {'name': 'Egypt', 'iso': 'EG'},
    '+27': {'name': 'South Africa', 'iso': 'ZA'},
    '+30': {'name': 'Greece', 'iso': 'GR'},
    '+31': {'name': 'Netherlands', 'iso': 'NL'},
    '+32': {'name': 'Belgium', 'iso': 'BE'},
    '+33': {'name': 'France', 'iso': 'FR'},
    '+34': {'name': 'Spain', 'iso': 'ES'},
    '+36': {'name': 'Hungary', 'iso': 'HU'},
    '+39': {'name': 'Italy', 'iso': 'IT'},
    '+40': {'name': 'Romania', 'iso': 'RO'},
    '+41': {'name': 'Switzerland', 'iso': 'CH'},
    '+43': {'name': 'Austria', 'iso': 'AT'},
    '+44': {'name': 'United Kingdom', 'iso': 'GB'},
    '+45': {'name': 'Denmark', 'iso': 'DK'},
    '+46': {'name': 'Sweden', 'iso': 'SE'},
    '+47': {'name': 'Norway', 'iso': 'NO'},
    '+48': {'name': 'Poland', 'iso': 'PL'},
    '+49': {'name': 'Germany', 'iso': 'DE'},
    '+52': {'name': 'Mexico', 'iso': 'MX'},
    '+54': {'name': 'Argentina', 'iso': 'AR'},
    '+55': {'name': 'Brazil', 'iso': 'BR'},
    '+56': {'name': 'Chile', 'iso': 'CL'},
    '+57': {'name': 'Colombia', 'iso': 'CO'},
    '+60': {'name': 'Malaysia', 'iso': 'MY'},
    '+61': {'name': 'Australia', 'iso': 'AU'},
    '+62': {'name': 'Indonesia', 'iso': 'ID'},
    '+63': {'name': 'Philippines', 'iso': 'PH'},
    '+64': {'name': 'New Zealand', 'iso': 'NZ'},
    '+65': {'name': 'Singapore', 'iso': 'SG'},
    '+66': {'name': 'Thailand', 'iso': 'TH'},
    '+81': {'name': 'Japan', 'iso': 'JP'},
    '+82': {'name': 'South Korea', 'iso': 'KR'},
    '+84': {'name': 'Vietnam', 'iso': 'VN'},
    '+86': {'name': 'China', 'iso': 'CN'},
    '+90': {'name': 'Turkey', 'iso': 'TR'},
    '+91': {'name': 'India', 'iso': 'IN'},
    '+92': {'name': 'Pakistan', 'iso': 'PK'},
    '+94': {'name': 'Sri Lanka', 'iso': 'LK'},
    '+234': {'name': 'Nigeria', 'iso': 'NG'},
    '+254': {'name': 'Kenya', 'iso': 'KE'},
    '+351': {'name': 'Portugal', 'iso': 'PT'},
    '+353': {'name': 'Ireland', 'iso': 'IE'},
    '+358': {'name': 'Finland', 'iso': 'FI'},
    '+359': {'name': 'Bulgaria', 'iso': 'BG'},
    '+380': {'name': 'Ukraine', 'iso': 'UA'},
    '+420': {'name': 'Czech Republic', 'iso': 'CZ'},
    '+421': {'name': 'Slovakia', 'iso': 'SK'},
    '+880': {'name': 'Bangladesh', 'iso': 'BD'},
    '+966': {'name': 'Saudi Arabia', 'iso': 'SA'},
    '+971': {'name': 'United Arab Emirates', 'iso': 'AE'},
    '+972': {'name': 'Israel', 'iso': 'IL'},
    '+977': {'name': 'Nepal', 'iso': 'NP'},
}


def normalize_dial_code(code: str) -> str:
    digits = re.sub(r'\D', '', code or '')
    return f'+{digits}' if digits else ''


def get_country_info(code: str) -> Optional[Dict[str, str]]:
    """
    Look up a dial code. An exact match wins; otherwise the longest known
    code that prefixes the input is used, so '+4812' resolves to Poland.
    """
    normalized = normalize_dial_code(code)
    if not normalized:
        return None
    if normalized in COUNTRY_CODE_MAP:
        return {'code': normalized, **COUNTRY_CODE_MAP[normalized]}
    for known in sorted(COUNTRY_CODE_MAP, key=len, reverse=True):
        if normalized.startswith(known):
            return {'code': known, **COUNTRY_CODE_MAP[known]}
    return None


def find_country_option_index(options: Sequence[str], code: str) -> int:
    """
    Find the option that represents the dial code's country.

    Options are matched on the code itself, the bare digits, the country
    name and the ISO code. Returns -1 when nothing matches.
    """
    info = get_country_info(code)
    if not info:
        return -1

    digits = info['code'][1:]
    code_pattern = re.compile(r'\+' + digits + r'(?!\d)')
    digits_pattern = re.compile(r'(?<![\d+])' + digits + r'(?!\d)')
    name = info['name'].lower()
    iso_pattern = re.compile(r'\b' + info['iso'].lower() + r'\b')

    for matcher in (
        lambda text: code_pattern.search(text),
        lambda text: name in text,
        lambda text: digits_pattern.search(text),
        lambda text: iso_pattern.search(text),
    ):
        for index, option in enumerate(options):
            text = (option or '').strip().lower()
            if text and matcher(text):
                return index
    return -1
