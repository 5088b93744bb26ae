import json
import math
import os

from .probability import MalformedInputError

# --- Category Enumerations ---
SEXES = ["female", "male"]
SES_NAMES = ["low", "middle", "high"]
EDUCATION_NAMES = [
    "<High School",
    "High School",
    "Some Post-secondary",
    "Post-secondary",
    "Associate's",
    "Bachelor's and up",
]

DEFAULT_DATASET = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "education.json"
)


def validate_rows(rows, outcomes=EDUCATION_NAMES):
    """Check every row names its group and carries one numeric field per outcome.

    Raises MalformedInputError on the first offending row.
    """
    if not isinstance(rows, list):
        raise MalformedInputError("Dataset must be a list of records.")
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise MalformedInputError(f"Row {i} is not a record.")
        for field in ("sex", "ses"):
            if field not in row:
                raise MalformedInputError(f"Row {i} is missing '{field}'.")
            if not isinstance(row[field], str):
                raise MalformedInputError(f"Row {i}: '{field}' must be a string, got {row[field]!r}.")
        for name in outcomes:
            if name not in row:
                raise MalformedInputError(f"Row {i} ({row['sex']}, {row['ses']}) is missing '{name}'.")
            value = row[name]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise MalformedInputError(f"Row {i}: '{name}' must be a number, got {value!r}.")
            if not math.isfinite(value):
                raise MalformedInputError(f"Row {i}: '{name}' must be finite, got {value!r}.")
    return rows


def load_dataset(path=DEFAULT_DATASET):
    """Read the JSON array of survey rows and validate it."""
    with open(path) as f:
        try:
            rows = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"{path}: invalid JSON ({e})") from e
    return validate_rows(rows)
