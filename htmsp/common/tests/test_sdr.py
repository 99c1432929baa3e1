#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from unittest import TestCase

import numpy as np

from htmsp.common.config import HtmDefaults
from htmsp.common.errors import BoundsError, ConfigError, DomainError
from htmsp.common.sdr import (
    ImmutableSdr, active_bits, cardinality, dense_to_sparse, deserialize, match_exactly,
    match_inexactly, overlap, overlap_score, sparse_to_dense, sparsity, union
)


def make_sdr(sparse, capacity=10):
    return ImmutableSdr.from_sparse(sparse, capacity)


class TestSdrConversions(TestCase):
    def test_sparse_to_dense(self):
        dense = sparse_to_dense([1, 3], size=5)
        self.assertEqual(dense.tolist(), [0., 1., 0., 1., 0.])
        self.assertEqual(sparse_to_dense({0, 2}, size=3, dtype=bool).tolist(), [True, False, True])
        self.assertEqual(sparse_to_dense([0, 3], shape=(2, 2)).shape, (2, 2))

    def test_dense_to_sparse(self):
        self.assertEqual(dense_to_sparse(np.array([0, 1, 0, 1])).tolist(), [1, 3])
        self.assertEqual(dense_to_sparse(np.zeros(4)).tolist(), [])


class TestImmutableSdr(TestCase):
    def test_empty(self):
        sdr = ImmutableSdr.empty()
        self.assertEqual(sdr.capacity, HtmDefaults().sdr_capacity)
        self.assertEqual(cardinality(sdr), 0)

        self.assertEqual(ImmutableSdr.empty(64).capacity, 64)
        self.assertEqual(ImmutableSdr.empty(defaults=HtmDefaults(sdr_capacity=16)).capacity, 16)

        with self.assertRaises(ConfigError):
            ImmutableSdr.empty(0)
        with self.assertRaises(ConfigError):
            ImmutableSdr([])

    def test_active_bit(self):
        sdr = make_sdr([1, 3, 5])
        self.assertEqual(sdr.capacity, 10)
        self.assertTrue(sdr.active_bit(3))
        self.assertFalse(sdr.active_bit(2))

        with self.assertRaises(BoundsError):
            sdr.active_bit(10)
        with self.assertRaises(BoundsError):
            sdr.active_bit(-1)

    def test_from_sparse_out_of_bounds(self):
        with self.assertRaises(BoundsError):
            make_sdr([1, 10])
        with self.assertRaises(BoundsError):
            make_sdr([-1])

    def test_set_bit_returns_new_sdr(self):
        sdr = make_sdr([1, 3, 5])
        new_sdr = sdr.set_bit(2)

        self.assertEqual(active_bits(new_sdr).tolist(), [1, 2, 3, 5])
        self.assertEqual(active_bits(sdr).tolist(), [1, 3, 5])
        self.assertEqual(active_bits(new_sdr.set_bit(1, False)).tolist(), [2, 3, 5])

        with self.assertRaises(BoundsError):
            sdr.set_bit(10)

    def test_set_bit_is_idempotent(self):
        sdr = make_sdr([1, 3, 5])
        for i, active in [(2, True), (3, True), (3, False), (7, False)]:
            once = sdr.set_bit(i, active)
            twice = once.set_bit(i, active)
            self.assertEqual(twice, once)
            self.assertTrue(np.array_equal(twice.serialize(), once.serialize()))

    def test_set_bit_range(self):
        sdr = make_sdr([1, 5])
        self.assertEqual(active_bits(sdr.set_bit_range(2, 4)).tolist(), [1, 2, 3, 4, 5])
        self.assertEqual(active_bits(sdr.set_bit_range(0, 9, False)).tolist(), [])
        self.assertEqual(active_bits(sdr.set_bit_range(7, 7)).tolist(), [1, 5, 7])

        with self.assertRaises(BoundsError):
            sdr.set_bit_range(4, 2)
        with self.assertRaises(BoundsError):
            sdr.set_bit_range(5, 10)

    def test_set_bits(self):
        sdr = make_sdr([1, 3, 5])
        self.assertEqual(active_bits(sdr.set_bits({0: True, 1: False})).tolist(), [0, 3, 5])
        with self.assertRaises(BoundsError):
            sdr.set_bits({12: True})

    def test_clear(self):
        sdr = make_sdr([1, 3, 5]).clear()
        self.assertEqual(sdr.capacity, 10)
        self.assertEqual(cardinality(sdr), 0)

    def test_immutability(self):
        sdr = make_sdr([1, 3, 5])
        bits = sdr.serialize()
        bits[0] = True
        self.assertFalse(sdr.active_bit(0))

        with self.assertRaises(ValueError):
            sdr.sparse[0] = 2

    def test_equality(self):
        self.assertEqual(make_sdr([1, 3]), make_sdr([3, 1]))
        self.assertNotEqual(make_sdr([1, 3]), make_sdr([1, 4]))
        self.assertNotEqual(make_sdr([1, 3]), make_sdr([1, 3], capacity=11))
        self.assertEqual(hash(make_sdr([1, 3])), hash(make_sdr([1, 3])))

    def test_serialization(self):
        sdr = make_sdr([0, 4, 9])
        bits = sdr.serialize()
        self.assertEqual(bits.dtype, np.bool_)
        self.assertEqual(bits.shape, (10, ))
        self.assertEqual(deserialize(bits), sdr)
        self.assertEqual(deserialize([0, 1, 1]), ImmutableSdr.from_sparse([1, 2], 3))
        self.assertEqual(len(sdr), 10)
        self.assertEqual(sum(sdr), 3)

    def test_invalid_deserialization(self):
        with self.assertRaises(DomainError):
            deserialize([0, 1, 2])


class TestSdrFunctions(TestCase):
    def test_cardinality_and_sparsity(self):
        sdr = make_sdr([1, 3, 5])
        self.assertEqual(cardinality(sdr), 3)
        self.assertAlmostEqual(sparsity(sdr), .3)

    def test_union(self):
        result = union(make_sdr([1, 3]), make_sdr([3, 4]), make_sdr([]))
        self.assertEqual(active_bits(result).tolist(), [1, 3, 4])
        self.assertEqual(union(make_sdr([2])), make_sdr([2]))

    def test_invalid_union(self):
        with self.assertRaises(DomainError):
            union()
        with self.assertRaises(DomainError):
            union(make_sdr([1]), make_sdr([1], capacity=5))

    def test_overlap(self):
        sdr1, sdr2 = make_sdr([1, 3, 5]), make_sdr([3, 5, 7])
        self.assertEqual(overlap(sdr1, sdr2).tolist(), [3, 5])
        self.assertEqual(overlap_score(sdr1, sdr2), 2)
        self.assertEqual(overlap_score(sdr1, make_sdr([])), 0)

    def test_union_overlaps_its_members_at_least_as_much(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            sdr1 = make_sdr(rng.choice(50, 8, replace=False), capacity=50)
            sdr2 = make_sdr(rng.choice(50, 8, replace=False), capacity=50)
            self.assertGreaterEqual(
                overlap_score(union(sdr1, sdr2), sdr1), overlap_score(sdr1, sdr2)
            )
            self.assertEqual(overlap_score(union(sdr1, sdr2), sdr1), cardinality(sdr1))

    def test_overlap_of_different_capacities(self):
        sdr1, sdr2 = make_sdr([1, 9]), make_sdr([1, 4], capacity=5)
        self.assertEqual(overlap(sdr1, sdr2).tolist(), [1])
        self.assertEqual(overlap_score(sdr2, sdr1), 1)

    def test_match_inexactly(self):
        sdr1, sdr2 = make_sdr([1, 3, 5]), make_sdr([3, 5, 7])
        self.assertTrue(match_inexactly(sdr1, sdr2, 2))
        self.assertFalse(match_inexactly(sdr1, sdr2, 3))
        self.assertTrue(match_inexactly(sdr1, sdr2, 0))

    def test_match_exactly(self):
        self.assertTrue(match_exactly(make_sdr([3, 5]), make_sdr([1, 3, 5])))
        self.assertFalse(match_exactly(make_sdr([1, 3, 5]), make_sdr([3, 5])))
        # an empty SDR is contained in any other
        self.assertTrue(match_exactly(make_sdr([]), make_sdr([1])))

    def test_match_exactly_is_reflexive(self):
        for sdr in [make_sdr([]), make_sdr([0]), make_sdr([2, 4, 9]), make_sdr(range(10))]:
            self.assertTrue(match_exactly(sdr, sdr))

    def test_cleared_sdr_matches_exactly(self):
        cleared = make_sdr([1, 3, 5]).clear()
        self.assertTrue(match_exactly(cleared, make_sdr([7])))
        self.assertTrue(match_exactly(cleared, make_sdr([])))
        self.assertFalse(match_exactly(make_sdr([7]), cleared))
