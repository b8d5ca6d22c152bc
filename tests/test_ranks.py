import unittest

from game import compare_normal, compare_plus, compare_same, neighbors, InvariantViolation


class TestRankUtilities(unittest.TestCase):
    def test_given_corner_edge_and_center_cells_when_neighbors_then_no_wraparound(self):
        self.assertEqual(neighbors(0), [None, 1, 3, None])
        self.assertEqual(neighbors(2), [None, None, 5, 1])
        self.assertEqual(neighbors(4), [1, 5, 7, 3])
        self.assertEqual(neighbors(6), [3, 7, None, None])
        self.assertEqual(neighbors(8), [5, None, None, 7])

    def test_given_out_of_range_cell_when_neighbors_then_invariant_violation(self):
        with self.assertRaises(InvariantViolation):
            neighbors(9)
        with self.assertRaises(InvariantViolation):
            neighbors(-1)

    def test_given_two_equal_ranks_when_compare_same_then_both_directions_fire(self):
        self.assertEqual(compare_same([5, 5, 5, 5], [5, 5, None, None]), [True, True, False, False])

    def test_given_single_equal_rank_when_compare_same_then_nothing_fires(self):
        self.assertEqual(compare_same([5, 5, 5, 5], [5, None, None, None]), [False] * 4)
        self.assertEqual(compare_same([5, 5, 5, 5], [5, 4, 6, None]), [False] * 4)

    def test_given_duplicate_sums_when_compare_plus_then_only_matching_directions_fire(self):
        # sums 8, 8 and a unique 6
        self.assertEqual(compare_plus([3, 4, 5, 6], [5, 4, None, None]), [True, True, False, False])
        self.assertEqual(compare_plus([3, 4, 5, 6], [5, 4, 1, None]), [True, True, False, False])

    def test_given_zero_sums_when_compare_plus_then_nothing_fires(self):
        self.assertEqual(compare_plus([0, 0, 1, 1], [0, 0, None, None]), [False] * 4)

    def test_given_equal_and_lower_ranks_when_compare_normal_then_only_strictly_greater_flips(self):
        self.assertEqual(compare_normal([5, 5, 5, 5], [4, 5, 6, None]), [True, False, False, False])


if __name__ == '__main__':
    unittest.main(verbosity=2)
