# tests/test_data_management/test_genotypes.py

import unittest
import numpy as np

# Adjust path to import from the root of the project
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corehunter.data_management.genotypes import (
    BiAllelicGenotypeData,
    GenotypeFrequencyData,
    create_default_genotype_data,
    create_frequency_genotype_data,
    infer_marker_names,
)
from corehunter.exceptions import DataLookupError, ValidationError
import corehunter_test_data as td


class TestGenotypeFrequencyData(unittest.TestCase):

    def setUp(self):
        self.data = td.genotype_data()

    def test_dimensions(self):
        self.assertEqual(self.data.size, 5)
        self.assertEqual(self.data.number_of_markers, 7)
        self.assertEqual(self.data.total_number_of_alleles, 19)
        self.assertEqual(self.data.allele_counts, (3, 2, 3, 4, 3, 2, 2))
        self.assertEqual(self.data.number_of_alleles(3), 4)

    def test_names(self):
        self.assertEqual(self.data.name, td.NAME)
        self.assertEqual(self.data.get_marker_names(), td.MARKER_NAMES)
        self.assertEqual(self.data.get_alleles(), td.ALLELE_NAMES)
        self.assertEqual(self.data.marker_name(4), "mk5")
        self.assertIsNone(self.data.allele_name(2, 0))
        self.assertEqual(self.data.identifiers, td.UNIQUE_IDENTIFIERS)
        self.assertEqual(self.data.names, td.NAMES)

    def test_allele_frequencies(self):
        for i, accession in enumerate(td.ALLELE_FREQUENCIES):
            for m, marker in enumerate(accession):
                for a, expected in enumerate(marker):
                    actual = self.data.allele_frequency(i, m, a)
                    if expected is None:
                        self.assertIsNone(actual)
                    else:
                        self.assertAlmostEqual(actual, expected)

    def test_marker_columns(self):
        self.assertEqual(self.data.marker_columns(1), slice(3, 5))
        self.assertEqual(self.data.marker_columns(6), slice(17, 19))

    def test_average_allele_frequency(self):
        self.assertAlmostEqual(self.data.average_allele_frequency([1, 2], 0, 0), 0.8)
        # missing values count as zero
        self.assertAlmostEqual(self.data.average_allele_frequency([0, 2], 0, 0), 0.3)
        averages = self.data.average_frequencies([1, 2])
        self.assertEqual(averages.shape, (19,))
        self.assertAlmostEqual(averages[0], 0.8)

    def test_average_of_empty_selection(self):
        with self.assertRaises(ValueError):
            self.data.average_allele_frequency([], 0, 0)

    def test_exported_frequencies_use_nan(self):
        table = self.data.get_allele_frequencies()
        self.assertEqual(table.shape, (5, 19))
        self.assertTrue(np.isnan(table[0, 0]))
        self.assertEqual(table[2, 0], 0.6)

    def test_tables_are_read_only(self):
        with self.assertRaises(ValueError):
            self.data.values[0, 0] = 1.0

    def test_lookup_out_of_range(self):
        with self.assertRaises(DataLookupError):
            self.data.allele_frequency(5, 0, 0)
        with self.assertRaises(DataLookupError):
            self.data.allele_frequency(0, 7, 0)
        with self.assertRaises(DataLookupError):
            self.data.allele_frequency(0, 1, 2)

    def test_invalid_names(self):
        with self.assertRaises(ValidationError):
            GenotypeFrequencyData(td.ALLELE_FREQUENCIES, td.headers(), td.MARKER_NAMES[:3])

    def test_summary(self):
        summary = self.data.get_summary()
        self.assertEqual(summary["markers"], 7)
        self.assertEqual(summary["alleles"], 19)


class TestBiAllelicGenotypeData(unittest.TestCase):

    def setUp(self):
        self.data = td.biallelic_data()

    def test_dimensions(self):
        self.assertEqual(self.data.number_of_markers, 7)
        self.assertEqual(self.data.total_number_of_alleles, 14)
        self.assertEqual(self.data.ploidy, 2)
        self.assertEqual(self.data.get_alleles(), [["0", "1"]] * 7)

    def test_scores_as_frequencies(self):
        self.assertAlmostEqual(self.data.allele_frequency(0, 0, 0), 0.5)
        self.assertAlmostEqual(self.data.allele_frequency(0, 0, 1), 0.5)
        self.assertAlmostEqual(self.data.allele_frequency(0, 1, 0), 1.0)
        self.assertAlmostEqual(self.data.allele_frequency(0, 2, 1), 1.0)

    def test_missing_scores(self):
        self.assertIsNone(self.data.allele_score(2, 2))
        self.assertIsNone(self.data.allele_frequency(2, 2, 0))
        self.assertIsNone(self.data.allele_frequency(2, 2, 1))

    def test_scores_round_trip(self):
        self.assertEqual(self.data.get_allele_scores(), td.ALLELE_SCORES_BIALLELIC)
        self.assertEqual(self.data.allele_score(1, 0), 2)

    def test_tetraploid_scores(self):
        data = BiAllelicGenotypeData([[0, 1, 4]], ploidy=4)
        self.assertAlmostEqual(data.allele_frequency(0, 1, 1), 0.25)
        self.assertAlmostEqual(data.allele_frequency(0, 2, 0), 0.0)

    def test_invalid_score(self):
        with self.assertRaises(ValidationError):
            BiAllelicGenotypeData([[0, 3]])


class TestInferMarkerNames(unittest.TestCase):

    def test_suffixed_columns(self):
        columns = ["mk1-1", "mk1-2", "mk2_1", "mk2_2", "mk3"]
        self.assertEqual(infer_marker_names(columns), [("mk1", 2), ("mk2", 2), ("mk3", 1)])

    def test_repeated_columns(self):
        self.assertEqual(infer_marker_names(["a", "a", "b"]), [("a", 2), ("b", 1)])

    def test_lone_suffixed_columns(self):
        self.assertEqual(infer_marker_names(["mk1-1", "mk2-1"]), [("mk1", 1), ("mk2", 1)])

    def test_without_suffix_stripping(self):
        self.assertEqual(infer_marker_names(["mk1-1", "mk1-2"], strip_suffix=False),
                         [("mk1-1", 1), ("mk1-2", 1)])

    def test_empty_column_name(self):
        with self.assertRaises(ValidationError):
            infer_marker_names(["mk1", ""])


class TestDefaultGenotypeData(unittest.TestCase):

    def setUp(self):
        self.alleles = [
            ["A", "B", "C", "C"],
            ["A", "A", "D", None],
            [None, None, "C", "D"],
        ]
        self.data = create_default_genotype_data(
            self.alleles, ["g1", "g2", "g3"], column_names=["mk1", "mk1", "mk2", "mk2"]
        )

    def test_markers_and_alleles(self):
        self.assertEqual(self.data.get_marker_names(), ["mk1", "mk2"])
        self.assertEqual(self.data.get_alleles(), [["A", "B"], ["C", "D"]])

    def test_frequencies(self):
        self.assertAlmostEqual(self.data.allele_frequency(0, 0, 0), 0.5)
        self.assertAlmostEqual(self.data.allele_frequency(1, 0, 0), 1.0)
        self.assertAlmostEqual(self.data.allele_frequency(1, 0, 1), 0.0)
        self.assertAlmostEqual(self.data.allele_frequency(2, 1, 1), 0.5)

    def test_missing_columns(self):
        # all columns missing
        self.assertIsNone(self.data.allele_frequency(2, 0, 0))
        # one of two columns missing: unobserved alleles are unknown
        self.assertIsNone(self.data.allele_frequency(1, 1, 0))
        self.assertAlmostEqual(self.data.allele_frequency(1, 1, 1), 0.5)

    def test_names_default_to_ids(self):
        self.assertEqual(self.data.names, ["g1", "g2", "g3"])

    def test_column_count_mismatch(self):
        with self.assertRaises(ValidationError):
            create_default_genotype_data(self.alleles, ["g1", "g2", "g3"], column_names=["mk1", "mk1"])

    def test_ids_required(self):
        with self.assertRaises(ValidationError):
            create_default_genotype_data(self.alleles, None, column_names=["mk1", "mk1", "mk2", "mk2"])


class TestFrequencyGenotypeData(unittest.TestCase):

    def test_flat_frequencies(self):
        data = create_frequency_genotype_data(
            [[0.5, 0.5, 1.0], [np.nan, np.nan, 1.0]], ["a", "b"],
            column_names=["mk1", "mk1", "mk2"], allele_names=["x", "y", "z"],
        )
        self.assertEqual(data.get_marker_names(), ["mk1", "mk2"])
        self.assertEqual(data.get_alleles(), [["x", "y"], ["z"]])
        self.assertIsNone(data.allele_frequency(1, 0, 0))
        self.assertEqual(data.allele_frequency(1, 1, 0), 1.0)

    def test_allele_names_required(self):
        with self.assertRaises(ValidationError):
            create_frequency_genotype_data([[1.0]], ["a"], column_names=["mk1"])


if __name__ == '__main__':
    unittest.main()
