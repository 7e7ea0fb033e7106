"""
Tests for validator selection and the staking pool.
"""
import random
import unittest
from collections import Counter

from stakechain.consensus import StakingPool, Validator, ValidatorSet
from stakechain.errors import NoActiveValidators


class FixedRandom:
    """Stand-in rng returning a fixed value from random()."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestValidatorSelection(unittest.TestCase):
    def setUp(self):
        """Set up three validators with unequal stakes."""
        self.validators = [
            Validator('validator1', 1_000_000),
            Validator('validator2', 800_000),
            Validator('validator3', 600_000),
        ]

    def test_single_validator_always_selected(self):
        """Test that a lone active validator always wins."""
        vset = ValidatorSet([Validator('solo', 10)], rng=random.Random(7))
        for _ in range(100):
            self.assertEqual(vset.select_validator().address, 'solo')

    def test_no_validators(self):
        """Test that an empty set cannot select."""
        with self.assertRaises(NoActiveValidators):
            ValidatorSet().select_validator()

    def test_all_inactive(self):
        """Test that inactive validators are never eligible."""
        for v in self.validators:
            v.active = False
        vset = ValidatorSet(self.validators)
        with self.assertRaises(NoActiveValidators):
            vset.select_validator()

    def test_all_zero_stake(self):
        """Test that zero-stake validators are never eligible."""
        vset = ValidatorSet([Validator('a', 0), Validator('b', 0)])
        with self.assertRaises(NoActiveValidators):
            vset.select_validator()

    def test_inactive_validator_skipped(self):
        """Test that only active validators with stake are walked."""
        self.validators[0].active = False
        self.validators[1].stake = 0
        vset = ValidatorSet(self.validators, rng=random.Random(1))
        for _ in range(50):
            self.assertEqual(vset.select_validator().address, 'validator3')

    def test_cumulative_walk(self):
        """Test that the draw is matched against cumulative stake in order."""
        vset = ValidatorSet(self.validators, rng=FixedRandom(0.0))
        self.assertEqual(vset.select_validator().address, 'validator1')

        # 0.5 * 2,400,000 = 1,200,000 falls in validator2's range
        vset.rng = FixedRandom(0.5)
        self.assertEqual(vset.select_validator().address, 'validator2')

        vset.rng = FixedRandom(0.99)
        self.assertEqual(vset.select_validator().address, 'validator3')

    def test_draw_on_boundary_selects_earlier_validator(self):
        """Test that meeting the cumulative stake exactly is enough."""
        vset = ValidatorSet([Validator('a', 100), Validator('b', 100)], rng=FixedRandom(0.5))
        self.assertEqual(vset.select_validator().address, 'a')

    def test_fallback_to_first_active(self):
        """Test the fallback when the walk never reaches the draw."""
        self.validators[0].active = False
        vset = ValidatorSet(self.validators, rng=FixedRandom(1.5))
        self.assertEqual(vset.select_validator().address, 'validator2')

    def test_selection_proportional_to_stake(self):
        """Test that selection frequency tracks the stake share."""
        vset = ValidatorSet(
            [Validator('heavy', 300), Validator('light', 100)],
            rng=random.Random(12345)
        )
        counts = Counter(vset.select_validator().address for _ in range(10000))
        share = counts['heavy'] / 10000
        self.assertAlmostEqual(share, 0.75, delta=0.03)

    def test_seeded_selection_is_reproducible(self):
        """Test that the same seed replays the same producers."""
        first = ValidatorSet(self.validators, rng=random.Random(99))
        picks_a = [first.select_validator().address for _ in range(20)]
        second = ValidatorSet(self.validators, rng=random.Random(99))
        picks_b = [second.select_validator().address for _ in range(20)]
        self.assertEqual(picks_a, picks_b)

    def test_active_count_ignores_stake(self):
        """Test that active_count counts the active flag only."""
        self.validators[2].stake = 0
        self.validators[1].active = False
        vset = ValidatorSet(self.validators)
        self.assertEqual(vset.active_count(), 2)
        self.assertEqual(len(vset.active_validators()), 1)
        self.assertEqual(vset.total_active_stake(), 1_000_000)

    def test_duplicate_registration(self):
        """Test that an address can only be registered once."""
        vset = ValidatorSet(self.validators)
        with self.assertRaises(ValueError):
            vset.add(Validator('validator1', 5))


class TestValidator(unittest.TestCase):
    def test_defaults(self):
        """Test a freshly registered validator."""
        v = Validator('validator1', 1000)
        self.assertTrue(v.active)
        self.assertEqual(v.missed_blocks, 0)
        self.assertEqual(v.produced_blocks, 0)

    def test_increase_stake(self):
        v = Validator('validator1', 1000)
        v.increase_stake(250)
        self.assertEqual(v.stake, 1250)

    def test_dict_round_trip(self):
        """Test to_dict/from_dict."""
        v = Validator('validator1', 1000, active=False, produced_blocks=3)
        self.assertEqual(Validator.from_dict(v.to_dict()).to_dict(), v.to_dict())


class TestStakingPool(unittest.TestCase):
    def test_empty_for_unknown_delegator(self):
        """Test that a delegator with no history has no entries."""
        self.assertEqual(StakingPool().delegated('alice'), {})

    def test_delegations_accumulate(self):
        """Test repeated delegations to the same validator."""
        pool = StakingPool()
        pool.add('alice', 'validator1', 100)
        pool.add('alice', 'validator1', 50)
        pool.add('alice', 'validator2', 10)
        pool.add('bob', 'validator1', 5)

        self.assertEqual(pool.delegated('alice'), {'validator1': 150, 'validator2': 10})
        self.assertEqual(pool.total_delegated('validator1'), 155)
        self.assertIn('bob', pool)

    def test_delegated_returns_copy(self):
        """Test that the returned mapping is not live state."""
        pool = StakingPool()
        pool.add('alice', 'validator1', 100)
        view = pool.delegated('alice')
        view['validator1'] = 0
        self.assertEqual(pool.delegated('alice')['validator1'], 100)
        self.assertNotIn('carol', pool)
        pool.delegated('carol')
        self.assertNotIn('carol', pool)


if __name__ == '__main__':
    unittest.main()
