# tests/test_data_management/test_validators.py

import unittest
import numpy as np

# Adjust path to import from the root of the project
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from corehunter.data_management.validators import (
    is_missing,
    marker_offsets,
    validate_allele_frequencies,
    validate_allele_names,
    validate_allele_scores,
    validate_distance_matrix,
    validate_flat_frequencies,
    validate_marker_names,
)
from corehunter.exceptions import ValidationError


class TestIsMissing(unittest.TestCase):

    def test_missing_values(self):
        self.assertTrue(is_missing(None))
        self.assertTrue(is_missing(float("nan")))
        self.assertTrue(is_missing(np.nan))

    def test_present_values(self):
        self.assertFalse(is_missing(0.0))
        self.assertFalse(is_missing("A"))


class TestAlleleFrequencies(unittest.TestCase):

    def test_valid_frequencies(self):
        counts, values, missing = validate_allele_frequencies([
            [[0.5, 0.5], [1.0, 0.0, 0.0]],
            [[None, None], [0.25, None, 0.5]],
        ])
        self.assertEqual(counts, [2, 3])
        self.assertEqual(values.shape, (2, 5))
        np.testing.assert_array_equal(missing[1], [True, True, False, True, False])
        self.assertEqual(values[1, 0], 0.0)

    def test_sum_must_be_one_without_missing_values(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[0.5, 0.4]]])

    def test_sum_may_be_below_one_with_missing_values(self):
        counts, _, _ = validate_allele_frequencies([[[0.4, None, 0.1]]])
        self.assertEqual(counts, [3])

    def test_sum_must_not_exceed_one(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[0.8, None, 0.4]]])

    def test_negative_frequency(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[1.5, -0.5]]])

    def test_non_numeric_frequency(self):
        with self.assertRaises(ValidationError) as context:
            validate_allele_frequencies([[[1.0, 0.0]], [["abc", 0.0]]])
        self.assertIn("accession 1, marker 0, allele 0", str(context.exception))

    def test_infinite_frequency(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[float("inf"), 0.0]]])

    def test_inconsistent_marker_count(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[1.0, 0.0]], [[1.0, 0.0], [0.5, 0.5]]])

    def test_inconsistent_allele_count(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[1.0, 0.0]], [[1.0, 0.0, 0.0]]])

    def test_empty(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([])
        with self.assertRaises(ValidationError):
            validate_allele_frequencies(None)

    def test_marker_without_alleles(self):
        with self.assertRaises(ValidationError):
            validate_allele_frequencies([[[]]])

    def test_tolerance_on_sums(self):
        third = 1.0 / 3.0
        counts, _, _ = validate_allele_frequencies([[[third, third, third]]])
        self.assertEqual(counts, [3])


class TestFlatFrequencies(unittest.TestCase):

    def test_valid_table(self):
        counts, values, missing = validate_flat_frequencies([[0.5, 0.5, 1.0], [np.nan, np.nan, 1.0]], [2, 1])
        self.assertEqual(counts, [2, 1])
        self.assertTrue(missing[1, 0])
        self.assertEqual(values[1, 0], 0.0)

    def test_column_count_mismatch(self):
        with self.assertRaises(ValidationError):
            validate_flat_frequencies([[0.5, 0.5]], [3])

    def test_bad_sum(self):
        with self.assertRaises(ValidationError):
            validate_flat_frequencies([[0.5, 0.2]], [2])

    def test_marker_offsets(self):
        np.testing.assert_array_equal(marker_offsets([2, 3, 1]), [0, 2, 5, 6])


class TestNames(unittest.TestCase):

    def test_marker_names_default(self):
        self.assertEqual(validate_marker_names(None, 2), [None, None])

    def test_marker_names_wrong_length(self):
        with self.assertRaises(ValidationError):
            validate_marker_names(["mk1"], 2)

    def test_allele_names_filled(self):
        self.assertEqual(validate_allele_names([None, ["a", "b"]], [1, 2]), [[None], ["a", "b"]])

    def test_allele_names_wrong_length(self):
        with self.assertRaises(ValidationError):
            validate_allele_names([["a"]], [2])


class TestAlleleScores(unittest.TestCase):

    def test_valid_scores(self):
        values, missing = validate_allele_scores([[0, 1, 2], [None, 2, 0]], 2)
        np.testing.assert_array_equal(values, [[0, 1, 2], [0, 2, 0]])
        np.testing.assert_array_equal(missing, [[False, False, False], [True, False, False]])

    def test_score_out_of_range(self):
        with self.assertRaises(ValidationError):
            validate_allele_scores([[3]], 2)
        with self.assertRaises(ValidationError):
            validate_allele_scores([[-1]], 2)

    def test_non_integer_score(self):
        with self.assertRaises(ValidationError):
            validate_allele_scores([[0.5]], 2)

    def test_infinite_score(self):
        with self.assertRaises(ValidationError) as context:
            validate_allele_scores([[0, float("inf")]], 2)
        self.assertIn("accession 0, marker 1", str(context.exception))

    def test_higher_ploidy(self):
        values, _ = validate_allele_scores([[4]], 4)
        self.assertEqual(values[0, 0], 4)

    def test_invalid_ploidy(self):
        with self.assertRaises(ValidationError):
            validate_allele_scores([[0]], 0)

    def test_ragged_rows(self):
        with self.assertRaises(ValidationError):
            validate_allele_scores([[0, 1], [1]], 2)


class TestDistanceMatrix(unittest.TestCase):

    def test_valid_matrix(self):
        matrix = validate_distance_matrix([[0, 1], [1, 0]])
        self.assertEqual(matrix.dtype, np.float64)

    def test_not_square(self):
        with self.assertRaises(ValidationError):
            validate_distance_matrix([[0, 1, 2], [1, 0, 2]])

    def test_not_symmetric(self):
        with self.assertRaises(ValidationError):
            validate_distance_matrix([[0, 1], [2, 0]])

    def test_non_zero_diagonal(self):
        with self.assertRaises(ValidationError):
            validate_distance_matrix([[0.1, 1], [1, 0]])

    def test_negative_distance(self):
        with self.assertRaises(ValidationError):
            validate_distance_matrix([[0, -1], [-1, 0]])

    def test_missing_distance(self):
        with self.assertRaises(ValidationError):
            validate_distance_matrix([[0, np.nan], [np.nan, 0]])


if __name__ == '__main__':
    unittest.main()
