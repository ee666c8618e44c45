import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import WeightConverter


class WeightConverterTestCase(unittest.TestCase):
    def test_kg_to_lb(self) -> None:
        self.assertAlmostEqual(WeightConverter.kg_to_lb(100), 220.46)
        self.assertAlmostEqual(WeightConverter.lb_to_kg(220.46), 100.0)

    def test_round_trip(self) -> None:
        lb = WeightConverter.to_lb(100.0, "kg")
        self.assertLess(abs(lb / WeightConverter.KG_TO_LB - 100.0), 0.01)
        self.assertLess(abs(WeightConverter.lb_to_kg(WeightConverter.kg_to_lb(100)) - 100), 0.01)

    def test_to_lb_units(self) -> None:
        self.assertAlmostEqual(WeightConverter.to_lb(50.0, "kg"), 110.231)
        self.assertEqual(WeightConverter.to_lb(135.0, "lb"), 135.0)
        self.assertEqual(WeightConverter.to_lb(135.0, "stone"), 135.0)


if __name__ == "__main__":
    unittest.main()
