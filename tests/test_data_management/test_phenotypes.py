# tests/test_data_management/test_phenotypes.py

import unittest
import numpy as np
import pandas as pd

# Adjust path to import from the root of the project
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corehunter.data_management.phenotypes import DataType, Feature, PhenotypeData, ScaleType, infer_feature
from corehunter.exceptions import DataLookupError, ValidationError
import corehunter_test_data as td


class TestFeature(unittest.TestCase):

    def test_parse_strings(self):
        feature = Feature("height", "Ratio", "double")
        self.assertIs(feature.scale, ScaleType.RATIO)
        self.assertIs(feature.data_type, DataType.DOUBLE)

    def test_default_data_type(self):
        self.assertIs(Feature("colour", ScaleType.NOMINAL).data_type, DataType.STRING)
        self.assertIs(Feature("rank", ScaleType.ORDINAL).data_type, DataType.INTEGER)

    def test_type_label(self):
        feature = Feature.from_type_label("weight", "interval:integer", 0, 10)
        self.assertEqual(feature.type_label, "interval:integer")
        self.assertEqual(feature.range, 10.0)

    def test_numeric_scale_requires_numeric_type(self):
        with self.assertRaises(ValidationError):
            Feature("x", ScaleType.INTERVAL, DataType.STRING)

    def test_nominal_feature_has_no_range(self):
        with self.assertRaises(ValidationError):
            Feature("x", ScaleType.NOMINAL, min_value=1)

    def test_inverted_range(self):
        with self.assertRaises(ValidationError):
            Feature("x", ScaleType.RATIO, min_value=2.0, max_value=1.0)

    def test_unknown_scale(self):
        with self.assertRaises(ValidationError):
            Feature("x", "banana")


class TestPhenotypeData(unittest.TestCase):

    def setUp(self):
        self.data = td.phenotype_data()

    def test_dimensions(self):
        self.assertEqual(self.data.size, 5)
        self.assertEqual(self.data.number_of_features, 4)
        self.assertEqual(self.data.name, td.NAME)
        self.assertEqual(list(self.data.frame.columns), ["feature1", "feature2", "feature3", "feature4"])

    def test_values(self):
        self.assertEqual(self.data.get_value(0, 0), 1)
        self.assertEqual(self.data.get_value(3, 1), 5.0)
        self.assertEqual(self.data.get_value(1, 2), "2")
        self.assertIs(self.data.get_value(2, 3), False)

    def test_ranges(self):
        self.assertEqual(self.data.get_ranges(), [5.0, 5.0, None, None])

    def test_numeric_values(self):
        np.testing.assert_array_equal(self.data.numeric_values(1), [1.0, 3.0, 3.0, 5.0, 4.0])
        with self.assertRaises(ValidationError):
            self.data.numeric_values(2)

    def test_category_codes(self):
        np.testing.assert_array_equal(self.data.category_codes(2), [0, 1, 0, 1, 0])

    def test_frame_is_a_copy(self):
        frame = self.data.frame
        frame.iat[0, 0] = 3
        self.assertEqual(self.data.get_value(0, 0), 1)

    def test_inferred_range(self):
        data = PhenotypeData([[1.0], [3.0]], [Feature("x", ScaleType.RATIO)])
        self.assertEqual(data.get_feature(0).min_value, 1.0)
        self.assertEqual(data.get_ranges(), [2.0])

    def test_value_outside_declared_range(self):
        with self.assertRaises(ValidationError):
            PhenotypeData([[1.0], [3.0]], [Feature("x", ScaleType.RATIO, max_value=2.0)])

    def test_missing_values(self):
        data = PhenotypeData([[1.0, None], [None, "a"]], [Feature("n", "ratio"), Feature("s", "nominal")])
        self.assertIsNone(data.get_value(1, 0))
        self.assertIsNone(data.get_value(0, 1))
        np.testing.assert_array_equal(data.category_codes(1), [-1, 0])

    def test_invalid_integer(self):
        with self.assertRaises(ValidationError):
            PhenotypeData([["1.5"]], [Feature("x", ScaleType.INTERVAL, DataType.INTEGER)])

    def test_boolean_strings(self):
        data = PhenotypeData([["true"], ["False"]], [Feature("flag", ScaleType.NOMINAL, DataType.BOOLEAN)])
        self.assertIs(data.get_value(0, 0), True)
        self.assertIs(data.get_value(1, 0), False)

    def test_column_count_mismatch(self):
        with self.assertRaises(ValidationError):
            PhenotypeData([[1.0, 2.0]], [Feature("x", ScaleType.RATIO)])

    def test_feature_out_of_range(self):
        with self.assertRaises(DataLookupError):
            self.data.get_feature(4)


class TestInferFeature(unittest.TestCase):

    def test_boolean(self):
        feature = infer_feature("f", pd.Series(["true", "false", None], dtype=object))
        self.assertIs(feature.data_type, DataType.BOOLEAN)

    def test_integer(self):
        feature = infer_feature("f", pd.Series(["1", "2"], dtype=object))
        self.assertIs(feature.scale, ScaleType.INTERVAL)
        self.assertIs(feature.data_type, DataType.INTEGER)

    def test_double(self):
        feature = infer_feature("f", pd.Series(["1.5", "2"], dtype=object))
        self.assertIs(feature.scale, ScaleType.RATIO)

    def test_string(self):
        feature = infer_feature("f", pd.Series(["a", "1"], dtype=object))
        self.assertIs(feature.scale, ScaleType.NOMINAL)
        self.assertIs(feature.data_type, DataType.STRING)


if __name__ == '__main__':
    unittest.main()
