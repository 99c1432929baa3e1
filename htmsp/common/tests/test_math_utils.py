#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
import math
from collections import Counter
from unittest import TestCase

import numpy as np

from htmsp.common.errors import DomainError
from htmsp.common.math_utils import (
    combinations, factorial, fit_to_range, mean, normalize, random_int, reservoir_sample,
    round_half_up, shuffle, wrap_to_range
)

# 2048 choose 40
N_PATTERNS_2048_40 = int(
    '2371778511645358086693262639700863268089720614584700731712608317643033681970419921664'
)


class TestCombinatorics(TestCase):
    def test_factorial(self):
        self.assertEqual(factorial(0), 1)
        self.assertEqual(factorial(1), 1)
        self.assertEqual(factorial(5), 120)
        self.assertEqual(factorial(30), math.factorial(30))

        with self.assertRaises(DomainError):
            factorial(-1)

    def test_combinations(self):
        self.assertEqual(combinations(5, 0), 1)
        self.assertEqual(combinations(5, 5), 1)
        self.assertEqual(combinations(5, 2), 10)
        self.assertEqual(combinations(100, 50), math.comb(100, 50))

    def test_combinations_are_exact_for_large_numbers(self):
        self.assertEqual(combinations(2048, 40), N_PATTERNS_2048_40)
        self.assertEqual(combinations(2048, 40), math.comb(2048, 40))

    def test_combinations_are_symmetric(self):
        for n in [0, 1, 7, 40, 2048]:
            for k in {0, 1, n // 3, n // 2, n}:
                self.assertEqual(combinations(n, k), combinations(n, n - k))

    def test_invalid_combinations(self):
        with self.assertRaises(DomainError):
            combinations(3, 4)
        with self.assertRaises(DomainError):
            combinations(3, -1)


class TestRanges(TestCase):
    def test_fit_to_range(self):
        self.assertEqual(fit_to_range(-1.), 0.)
        self.assertEqual(fit_to_range(2.), 1.)
        self.assertEqual(fit_to_range(.3), .3)
        self.assertEqual(fit_to_range(5, 0, 10), 5)
        self.assertEqual(fit_to_range(11, 0, 10), 10)

    def test_normalize(self):
        self.assertEqual(normalize(5, 0, 10), .5)
        self.assertEqual(normalize(20, 0, 10), 1.)
        self.assertEqual(normalize(-20, 0, 10), 0.)
        with self.assertRaises(DomainError):
            normalize(1, 2, 2)

    def test_wrap_to_range(self):
        self.assertEqual(wrap_to_range(-3, 0, 10), 7)
        self.assertEqual(wrap_to_range(12, 0, 10), 2)
        self.assertEqual(wrap_to_range(10, 0, 10), 0)
        self.assertEqual(wrap_to_range(0, 0, 10), 0)
        self.assertEqual(wrap_to_range(9, 0, 10), 9)
        self.assertEqual(wrap_to_range(1, 2, 5), 4)
        with self.assertRaises(DomainError):
            wrap_to_range(1, 3, 3)

    def test_mean(self):
        self.assertEqual(mean([]), 0)
        self.assertEqual(mean([1, 2, 3]), 2)
        self.assertEqual(mean(x for x in [1., 2.]), 1.5)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(.5), 1)
        self.assertEqual(round_half_up(1.5), 2)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.49), 2)
        self.assertEqual(round_half_up(-.5), 0)


class TestSampling(TestCase):
    def test_random_int(self):
        rng = np.random.default_rng(0)
        values = [random_int(rng, 3, 7) for _ in range(1000)]
        self.assertEqual(set(values), {3, 4, 5, 6})

    def test_shuffle(self):
        rng = np.random.default_rng(0)
        collection = list(range(20))
        shuffled = shuffle(rng, collection)

        self.assertEqual(sorted(shuffled), collection)
        # the source is left untouched
        self.assertEqual(collection, list(range(20)))
        self.assertEqual(shuffle(np.random.default_rng(0), collection), shuffled)
        self.assertEqual(shuffle(rng, []), [])

    def test_reservoir_sample(self):
        rng = np.random.default_rng(42)
        for n, k in [(10, 3), (100, 20), (5, 5), (7, 0), (1, 1)]:
            sample = reservoir_sample(rng, n, k)
            self.assertEqual(sample.shape, (k, ))
            self.assertEqual(len(set(sample.tolist())), k)
            self.assertTrue(np.all((0 <= sample) & (sample < n)))

    def test_reservoir_sample_is_reproducible(self):
        sample1 = reservoir_sample(np.random.default_rng(7), 1000, 50)
        sample2 = reservoir_sample(np.random.default_rng(7), 1000, 50)
        self.assertTrue(np.array_equal(sample1, sample2))

    def test_reservoir_sample_depends_on_seed(self):
        sample1 = reservoir_sample(np.random.default_rng(7), 1000, 50)
        sample2 = reservoir_sample(np.random.default_rng(8), 1000, 50)
        self.assertFalse(np.array_equal(sample1, sample2))

    def test_reservoir_sample_of_everything(self):
        sample = reservoir_sample(np.random.default_rng(0), 5, 5)
        self.assertEqual(sample.tolist(), [0, 1, 2, 3, 4])

    def test_reservoir_sample_is_uniform(self):
        rng = np.random.default_rng(1)
        n_trials = 6000
        subsets = Counter(
            tuple(sorted(reservoir_sample(rng, 4, 2).tolist()))
            for _ in range(n_trials)
        )

        # all C(4, 2) = 6 subsets are equally likely
        self.assertEqual(len(subsets), 6)
        for count in subsets.values():
            self.assertAlmostEqual(count, n_trials / 6, delta=150)

    def test_invalid_reservoir_sample(self):
        rng = np.random.default_rng(0)
        with self.assertRaises(DomainError):
            reservoir_sample(rng, 3, 4)
        with self.assertRaises(DomainError):
            reservoir_sample(rng, 3, -1)
