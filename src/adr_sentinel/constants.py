"""Project-wide constants."""

# -- Similarity metrics -----------------------------------------------------
EDIT_SIMILARITY_WEIGHT: float = 0.4
JARO_WINKLER_WEIGHT: float = 0.4
NGRAM_SIMILARITY_WEIGHT: float = 0.2
NGRAM_SIZE: int = 2
MIN_WORD_LENGTH: int = 3  # words of length > 2 count toward symptom overlap

# -- Search index -----------------------------------------------------------
INDEX_TTL_SECONDS: float = 5 * 60
INDEX_MAX_CANDIDATES: int = 30
MIN_INDEXED_TOKEN_LENGTH: int = 2
PREFIX_TOKEN_SCORE: float = 0.75

# Relative field weights for coarse retrieval. Name and generic name dominate;
# the ratios follow the catalog search key weights of the reporting platform.
FIELD_WEIGHTS: dict[str, float] = {
    "name": 1.0,
    "generic_name": 0.9,
    "indications": 0.6,
    "category": 0.4,
    "manufacturer_name": 0.3,
}

# -- Medicine matcher -------------------------------------------------------
DEFAULT_MAX_RESULTS: int = 10
DEFAULT_MIN_SCORE: float = 0.3
EXACT_GENERIC_SCORE: float = 0.95
CONTAINS_NAME_MULTIPLIER: float = 0.9
CONTAINS_GENERIC_MULTIPLIER: float = 0.85
HIGH_SIMILARITY_THRESHOLD: float = 0.8
HIGH_SIMILARITY_NAME_MULTIPLIER: float = 0.8
HIGH_SIMILARITY_GENERIC_MULTIPLIER: float = 0.75
PREFIX_BOOST: float = 1.1
NON_EXACT_SCORE_CAP: float = 0.99

SUGGESTION_LIMIT: int = 5
SUGGESTION_MIN_SCORE: float = 0.2
SUGGESTION_MIN_LENGTH: int = 2

# -- Duplicate detection ----------------------------------------------------
DUPLICATE_TIME_WINDOW_HOURS: float = 72
DUPLICATE_SAME_DAY_HOURS: float = 24
DUPLICATE_SIMILARITY_THRESHOLD: float = 0.7
DUPLICATE_CANDIDATE_LIMIT: int = 50
PRESUBMISSION_CANDIDATE_LIMIT: int = 20
DUPLICATE_SCORE_CAP: float = 0.99
DUPLICATE_WEIGHTS: dict[str, float] = {
    "same_medicine": 0.35,
    "same_patient": 0.25,
    "similar_symptoms": 0.25,
    "close_incident_date": 0.15,
}
BATCH_DELAY_SECONDS: float = 1.0
SCORE_EPSILON: float = 1e-9
