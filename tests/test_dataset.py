import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.dataset import (DEFAULT_DATASET, EDUCATION_NAMES, SES_NAMES, SEXES,
                         load_dataset, validate_rows)
from src.probability import MalformedInputError, group_key


class TestDataset(unittest.TestCase):

    def test_bundled_dataset(self):
        """One row per sex x status, each summing to ~100%."""
        rows = load_dataset(DEFAULT_DATASET)
        keys = {group_key(r["sex"], r["ses"]) for r in rows}
        self.assertEqual(keys, {group_key(x, s) for x in SEXES for s in SES_NAMES})
        for r in rows:
            self.assertAlmostEqual(sum(r[name] for name in EDUCATION_NAMES), 100.0, places=6)

    def test_group_key(self):
        self.assertEqual(group_key("female", "middle"), "female--middle")

    def test_missing_field_names_row(self):
        rows = load_dataset(DEFAULT_DATASET)
        del rows[4]["High School"]
        with self.assertRaises(MalformedInputError) as ctx:
            validate_rows(rows)
        self.assertIn("Row 4", str(ctx.exception))
        self.assertIn("High School", str(ctx.exception))

    def test_rejects_non_list(self):
        with self.assertRaises(MalformedInputError):
            validate_rows({"sex": "female"})

    def test_rejects_bool_percentage(self):
        rows = load_dataset(DEFAULT_DATASET)
        rows[0]["Associate's"] = True
        with self.assertRaises(MalformedInputError):
            validate_rows(rows)

    def test_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "broken.json")
            with open(path, "w") as f:
                f.write("[{\"sex\": ")
            with self.assertRaises(MalformedInputError):
                load_dataset(path)

    def test_nan_percentage_rejected(self):
        """json accepts the NaN literal; loading must still fail."""
        rows = load_dataset(DEFAULT_DATASET)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nan.json")
            with open(path, "w") as f:
                f.write(json.dumps(rows).replace('"<High School": 10.0', '"<High School": NaN', 1))
            with self.assertRaises(MalformedInputError) as ctx:
                load_dataset(path)
        self.assertIn("finite", str(ctx.exception))

    def test_non_string_group_field(self):
        rows = load_dataset(DEFAULT_DATASET)
        rows[1]["sex"] = 0
        with self.assertRaises(MalformedInputError) as ctx:
            validate_rows(rows)
        self.assertIn("Row 1", str(ctx.exception))

    def test_round_trip_file(self):
        rows = [{"sex": "male", "ses": "low", **{name: 100 / 6 for name in EDUCATION_NAMES}}]
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "edu.json")
            with open(path, "w") as f:
                json.dump(rows, f)
            self.assertEqual(load_dataset(path), rows)

    def test_malformed_is_value_error(self):
        self.assertTrue(issubclass(MalformedInputError, ValueError))


if __name__ == '__main__':
    unittest.main()
