# tests/test_data_management/test_io_handlers.py

import unittest
import numpy as np
import tempfile
import os

# Adjust path to import from the root of the project
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corehunter.data_management.data_structures import create_headers
from corehunter.data_management.distances import DistanceMatrixData
from corehunter.data_management.genotypes import BiAllelicGenotypeData, GenotypeFrequencyData
from corehunter.data_management.io_handlers import (
    FileType,
    infer_file_type,
    read_distance_data,
    read_genotype_data,
    read_phenotype_data,
    write_distance_data,
    write_genotype_data,
    write_phenotype_data,
)
from corehunter.data_management.phenotypes import DataType, PhenotypeData, ScaleType
from corehunter.exceptions import DatasetIOError, ValidationError
import corehunter_test_data as td

IDS = ["a", "b", "c", "d", "e"]


class TestIOHandlers(unittest.TestCase):

    def setUp(self):
        # Create a temporary directory to store test files
        self.test_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.test_dir.cleanup()

    def _write(self, file_name, content):
        path = os.path.join(self.test_dir.name, file_name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def _path(self, file_name):
        return os.path.join(self.test_dir.name, file_name)

    # --- Tests for file types ---
    def test_infer_file_type(self):
        self.assertIs(infer_file_type("data.TXT"), FileType.TXT)
        self.assertIs(infer_file_type("dir/data.csv"), FileType.CSV)
        with self.assertRaises(DatasetIOError):
            infer_file_type("data.xls")

    def test_missing_file(self):
        with self.assertRaises(DatasetIOError):
            read_distance_data(self._path("missing.csv"))

    def test_header_must_start_with_id(self):
        path = self._write("bad.csv", "KEY,mk1\na,0\n")
        with self.assertRaises(DatasetIOError):
            read_genotype_data(path, "biparental")

    def test_short_row(self):
        path = self._write("short.csv", "ID,mk1,mk2\na,0,1\nb,0\n")
        with self.assertRaises(DatasetIOError):
            read_genotype_data(path, "biparental")

    # --- Tests for genotype data ---
    def test_read_default_genotypes(self):
        path = self._write("default.csv",
                           "ID,NAME,mk1,mk1,mk2,mk2\n"
                           "g1,Alice,A,B,C,C\n"
                           "g2,,A,A,D,\n"
                           "g3,Carol,,,C,D\n")
        data = read_genotype_data(path, "default")
        self.assertEqual(data.identifiers, ["g1", "g2", "g3"])
        self.assertEqual(data.names, ["Alice", None, "Carol"])
        self.assertEqual(data.get_marker_names(), ["mk1", "mk2"])
        self.assertEqual(data.get_alleles(), [["A", "B"], ["C", "D"]])
        self.assertAlmostEqual(data.allele_frequency(0, 0, 1), 0.5)
        self.assertIsNone(data.allele_frequency(2, 0, 0))
        self.assertEqual(data.name, "default.csv")

    def test_read_frequency_genotypes(self):
        path = self._write("frequencies.txt",
                           "ID\tmk1\tmk1\tmk2\tmk2\n"
                           "ALLELE\ta\tb\tc\td\n"
                           "x1\t0.5\t0.5\t1.0\t0.0\n"
                           "x2\t\t\t0.2\t0.8\n")
        data = read_genotype_data(path, "frequency")
        self.assertEqual(data.get_marker_names(), ["mk1", "mk2"])
        self.assertEqual(data.get_alleles(), [["a", "b"], ["c", "d"]])
        self.assertIsNone(data.allele_frequency(1, 0, 0))
        self.assertAlmostEqual(data.allele_frequency(1, 1, 1), 0.8)

    def test_read_biparental_genotypes(self):
        path = self._write("scores.txt", "ID\tmk1\tmk2\nb1\t0\t2\nb2\t1\t\n")
        data = read_genotype_data(path, "biparental")
        self.assertIsInstance(data, BiAllelicGenotypeData)
        self.assertEqual(data.get_allele_scores(), [[0, 2], [1, None]])

    def test_invalid_frequencies_in_file(self):
        path = self._write("invalid.csv", "ID,mk1,mk1\nx1,0.5,0.6\n")
        with self.assertRaises(ValidationError):
            read_genotype_data(path, "frequency")

    def test_frequency_round_trip(self):
        data = GenotypeFrequencyData(td.ALLELE_FREQUENCIES, create_headers(IDS, td.NAMES),
                                     td.MARKER_NAMES, td.ALLELE_NAMES)
        path = self._path("round_trip.txt")
        write_genotype_data(data, path)
        read = read_genotype_data(path, "frequency")
        np.testing.assert_allclose(read.get_allele_frequencies(), data.get_allele_frequencies())
        self.assertEqual(read.get_marker_names(), td.MARKER_NAMES)
        self.assertEqual(read.get_alleles(), td.ALLELE_NAMES)
        self.assertEqual(read.names, td.NAMES)

    def test_biparental_round_trip(self):
        data = BiAllelicGenotypeData(td.ALLELE_SCORES_BIALLELIC, create_headers(IDS), td.MARKER_NAMES)
        path = self._path("round_trip.csv")
        write_genotype_data(data, path)
        read = read_genotype_data(path, "biparental")
        self.assertEqual(read.get_allele_scores(), td.ALLELE_SCORES_BIALLELIC)
        self.assertEqual(read.identifiers, IDS)

    def test_frequency_round_trip_without_marker_names(self):
        data = GenotypeFrequencyData(td.ALLELE_FREQUENCIES, create_headers(IDS))
        path = self._path("unnamed.txt")
        write_genotype_data(data, path)
        read = read_genotype_data(path, "frequency")
        self.assertEqual(read.get_marker_names(), [None] * len(td.MARKER_NAMES))
        self.assertEqual(read.allele_counts, data.allele_counts)
        np.testing.assert_allclose(read.get_allele_frequencies(), data.get_allele_frequencies())

    def test_frequency_round_trip_with_repeated_marker_names(self):
        frequencies = [
            [[0.5, 0.5], [1.0, 0.0]],
            [[None, None], [0.2, 0.8]],
        ]
        data = GenotypeFrequencyData(frequencies, create_headers(["x1", "x2"]), ["m", "m"])
        path = self._path("repeated.csv")
        write_genotype_data(data, path)
        read = read_genotype_data(path, "frequency")
        self.assertEqual(read.get_marker_names(), ["m", "m"])
        self.assertEqual(read.allele_counts, (2, 2))
        self.assertIsNone(read.allele_frequency(1, 0, 0))
        self.assertAlmostEqual(read.allele_frequency(1, 1, 1), 0.8)

    def test_read_frequency_genotypes_with_marker_row(self):
        path = self._write("indexed.txt",
                           "ID\tm\tm\t\t\t\n"
                           "MARKER\t0\t0\t1\t1\t1\n"
                           "x1\t0.5\t0.5\t0.2\t0.3\t0.5\n")
        data = read_genotype_data(path, "frequency")
        self.assertEqual(data.get_marker_names(), ["m", None])
        self.assertEqual(data.allele_counts, (2, 3))

    def test_invalid_marker_row(self):
        path = self._write("gap.csv", "ID,m,m,n\nMARKER,0,0,2\nx1,0.5,0.5,1.0\n")
        with self.assertRaises(DatasetIOError):
            read_genotype_data(path, "frequency")

    def test_biparental_round_trip_marker_names(self):
        scores = [[0, 2, 1], [2, None, 0]]
        for marker_names in (None, ["m", "m", "n"]):
            with self.subTest(marker_names=marker_names):
                data = BiAllelicGenotypeData(scores, create_headers(["b1", "b2"]), marker_names)
                path = self._path("scores.txt")
                write_genotype_data(data, path)
                read = read_genotype_data(path, "biparental")
                self.assertEqual(read.get_marker_names(), data.get_marker_names())
                self.assertEqual(read.get_allele_scores(), scores)

    def test_write_requires_identifiers(self):
        with self.assertRaises(DatasetIOError):
            write_genotype_data(td.genotype_data(), self._path("no_ids.txt"))

    # --- Tests for phenotype data ---
    def test_read_phenotypes_with_types(self):
        path = self._write("phenotypes.csv",
                           "ID,NAME,height,colour,flag\n"
                           "TYPE,,ratio:double,nominal,nominal:boolean\n"
                           "MIN,,0,,\n"
                           "MAX,,10,,\n"
                           "p1,P1,1.5,red,true\n"
                           "p2,P2,,blue,false\n")
        data = read_phenotype_data(path)
        self.assertEqual(data.get_ranges(), [10.0, None, None])
        self.assertIs(data.get_feature(1).data_type, DataType.STRING)
        self.assertIsNone(data.get_value(1, 0))
        self.assertIs(data.get_value(0, 2), True)
        self.assertEqual(data.names, ["P1", "P2"])

    def test_read_phenotypes_inferred_types(self):
        path = self._write("inferred.csv", "ID,weight,breed\na,3,x\nb,5,y\n")
        data = read_phenotype_data(path)
        self.assertIs(data.get_feature(0).scale, ScaleType.INTERVAL)
        self.assertIs(data.get_feature(1).scale, ScaleType.NOMINAL)
        self.assertEqual(data.get_ranges(), [2.0, None])

    def test_phenotype_round_trip(self):
        data = PhenotypeData(td.GOWER_DATA, td.GOWER_FEATURES, create_headers(IDS, td.NAMES))
        path = self._path("phenotypes.txt")
        write_phenotype_data(data, path)
        read = read_phenotype_data(path)
        self.assertEqual(read.features, data.features)
        for i in range(5):
            for j in range(4):
                self.assertEqual(read.get_value(i, j), data.get_value(i, j))

    # --- Tests for distance data ---
    def test_read_distances(self):
        path = self._write("distances.csv",
                           "ID,NAME,a,b,c\n"
                           "a,A,0,0.5,1\n"
                           "b,B,0.5,0,0.7\n"
                           "c,,1,0.7,0\n")
        data = read_distance_data(path)
        self.assertEqual(data.names, ["A", "B", None])
        self.assertAlmostEqual(data.get_distance(1, 2), 0.7)

    def test_distance_columns_must_match_rows(self):
        path = self._write("mismatch.csv", "ID,a,x\na,0,1\nb,1,0\n")
        with self.assertRaises(ValidationError):
            read_distance_data(path)

    def test_distance_round_trip(self):
        data = DistanceMatrixData(td.DISTANCES, create_headers(IDS))
        path = self._path("distances.txt")
        write_distance_data(data, path)
        read = read_distance_data(path)
        np.testing.assert_allclose(read.to_matrix(), td.DISTANCES)
        self.assertEqual(read.identifiers, IDS)


if __name__ == '__main__':
    unittest.main()
