"""Application constants."""

USER_AGENT = "brand-locations/1.0 (+poi-normalisation; contact: configured-email)"
STAGES = (
    "extract",
    "validate",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "brand",
    "source",
    "event",
    "status",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)

US_STATE_NAMES = {
    "Alabama": "AL",
    "Alaska": "AK",
    "Arizona": "AZ",
    "Arkansas": "AR",
    "California": "CA",
    "Colorado": "CO",
    "Connecticut": "CT",
    "Delaware": "DE",
    "District of Columbia": "DC",
    "Florida": "FL",
    "Georgia": "GA",
    "Hawaii": "HI",
    "Idaho": "ID",
    "Illinois": "IL",
    "Indiana": "IN",
    "Iowa": "IA",
    "Kansas": "KS",
    "Kentucky": "KY",
    "Louisiana": "LA",
    "Maine": "ME",
    "Maryland": "MD",
    "Massachusetts": "MA",
    "Michigan": "MI",
    "Minnesota": "MN",
    "Mississippi": "MS",
    "Missouri": "MO",
    "Montana": "MT",
    "Nebraska": "NE",
    "Nevada": "NV",
    "New Hampshire": "NH",
    "New Jersey": "NJ",
    "New Mexico": "NM",
    "New York": "NY",
    "North Carolina": "NC",
    "North Dakota": "ND",
    "Ohio": "OH",
    "Oklahoma": "OK",
    "Oregon": "OR",
    "Pennsylvania": "PA",
    "Rhode Island": "RI",
    "South Carolina": "SC",
    "South Dakota": "SD",
    "Tennessee": "TN",
    "Texas": "TX",
    "Utah": "UT",
    "Vermont": "VT",
    "Virginia": "VA",
    "Washington": "WA",
    "West Virginia": "WV",
    "Wisconsin": "WI",
    "Wyoming": "WY",
}

US_TERRITORY_NAMES = {
    "Puerto Rico": "PR",
    "U.S. Virgin Islands": "VI",
    "Guam": "GU",
}

CA_PROVINCE_NAMES = {
    "Alberta": "AB",
    "British Columbia": "BC",
    "Manitoba": "MB",
    "New Brunswick": "NB",
    "Newfoundland and Labrador": "NL",
    "Nova Scotia": "NS",
    "Northwest Territories": "NT",
    "Nunavut": "NU",
    "Ontario": "ON",
    "Prince Edward Island": "PE",
    "Quebec": "QC",
    "Saskatchewan": "SK",
    "Yukon": "YT",
}

US_STATES = frozenset(US_STATE_NAMES.values()) | frozenset(US_TERRITORY_NAMES.values())
CA_PROVINCES = frozenset(CA_PROVINCE_NAMES.values())
JURISDICTIONS = US_STATES | CA_PROVINCES

JURISDICTION_BY_NAME = {
    name.lower(): code
    for name, code in {**US_STATE_NAMES, **US_TERRITORY_NAMES, **CA_PROVINCE_NAMES}.items()
}
# Full names are matched longest first so "West Virginia" beats "Virginia".
JURISDICTION_NAMES_LONGEST_FIRST = tuple(sorted(JURISDICTION_BY_NAME, key=lambda name: (-len(name), name)))

